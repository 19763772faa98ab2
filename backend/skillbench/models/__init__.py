from skillbench.models.skill_progress import SkillProgress
from skillbench.models.peer_cohort import PeerCohortAggregate, PeerContribution

__all__ = ["SkillProgress", "PeerCohortAggregate", "PeerContribution"]

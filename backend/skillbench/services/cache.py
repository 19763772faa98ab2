"""
Redis Stats Cache

Caches the two read-heavy, slow-changing peer outputs:
- Peer stats (5min TTL): PeerGroupStats per cohort bucket
- Analysis (1hr TTL): StatisticalAnalysis per skill/level

Cache Key Patterns:
    - peer:{skill_id}:{experience_level}:{region} - peer group stats
    - analysis:{skill_id}:{experience_level} - statistical analysis

Only exposable results are ever written; a suppressed cohort is
recomputed on every request. Recording an observation invalidates the
bucket's keys for all regions.

Usage:
    cache = await get_cache()

    stats = await cache.get_peer_stats("JavaScript", "mid", None)
    if stats is None:
        stats = await engine.get_peer_group_stats("JavaScript", ExperienceLevel.MID)
        if stats:
            await cache.set_peer_stats("JavaScript", "mid", None, stats)
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

import redis.asyncio as redis

from skillbench.config import get_settings
from skillbench.middleware.metrics import record_cache_hit, record_cache_miss
from skillbench.models.peer_cohort import GLOBAL_REGION
from skillbench.schemas.peer import PeerGroupStats, StatisticalAnalysis

logger = logging.getLogger(__name__)


class CacheLayer(Enum):
    """Cache layers with TTL values in seconds."""

    PEER_STATS = ("peer_stats", 300)     # 5 minutes
    ANALYSIS = ("analysis", 3600)        # 1 hour

    def __init__(self, layer_name: str, ttl: int):
        self.layer_name = layer_name
        self._ttl = ttl

    @property
    def ttl(self) -> int:
        return self._ttl


def peer_stats_key(skill_id: str, experience_level: str, region: Optional[str]) -> str:
    return f"peer:{skill_id}:{experience_level}:{region or GLOBAL_REGION}"


def analysis_key(skill_id: str, experience_level: str) -> str:
    return f"analysis:{skill_id}:{experience_level}"


class StatsCache:
    """
    Redis cache for peer statistics.

    Provides graceful degradation when Redis is unavailable: reads
    return None and writes return False instead of raising.

    Attributes:
        redis: Async Redis client
        stats: Dict tracking hits/misses per layer
    """

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.redis: Optional[redis.Redis] = None
        self.stats: Dict[str, Dict[str, int]] = {
            "hits": {layer.layer_name: 0 for layer in CacheLayer},
            "misses": {layer.layer_name: 0 for layer in CacheLayer},
        }

    async def _ensure_connected(self) -> Optional[redis.Redis]:
        """Ensure Redis connection is established."""
        if self.redis is None:
            try:
                self.redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True
                )
            except Exception as e:
                logger.warning(f"Failed to connect to Redis: {e}")
                return None
        return self.redis

    def _hit(self, layer: CacheLayer) -> None:
        self.stats["hits"][layer.layer_name] += 1
        record_cache_hit(layer.layer_name)

    def _miss(self, layer: CacheLayer) -> None:
        self.stats["misses"][layer.layer_name] += 1
        record_cache_miss(layer.layer_name)

    async def _get(self, layer: CacheLayer, key: str) -> Optional[str]:
        try:
            client = await self._ensure_connected()
            if not client:
                return None

            cached = await client.get(key)
            if cached:
                self._hit(layer)
                return cached

            self._miss(layer)
            return None

        except Exception as e:
            logger.warning(f"Redis get error ({layer.layer_name} cache): {e}")
            self._miss(layer)
            return None

    async def _set(self, layer: CacheLayer, key: str, payload: str) -> bool:
        try:
            client = await self._ensure_connected()
            if not client:
                return False

            await client.setex(key, layer.ttl, payload)
            return True

        except Exception as e:
            logger.warning(f"Redis set error ({layer.layer_name} cache): {e}")
            return False

    # ==================== Peer Stats ====================

    async def get_peer_stats(
        self,
        skill_id: str,
        experience_level: str,
        region: Optional[str] = None,
    ) -> Optional[PeerGroupStats]:
        cached = await self._get(
            CacheLayer.PEER_STATS, peer_stats_key(skill_id, experience_level, region)
        )
        return PeerGroupStats.model_validate_json(cached) if cached else None

    async def set_peer_stats(
        self,
        skill_id: str,
        experience_level: str,
        region: Optional[str],
        stats: PeerGroupStats,
    ) -> bool:
        return await self._set(
            CacheLayer.PEER_STATS,
            peer_stats_key(skill_id, experience_level, region),
            stats.model_dump_json(),
        )

    # ==================== Statistical Analysis ====================

    async def get_analysis(self, skill_id: str, experience_level: str) -> Optional[StatisticalAnalysis]:
        cached = await self._get(CacheLayer.ANALYSIS, analysis_key(skill_id, experience_level))
        return StatisticalAnalysis.model_validate_json(cached) if cached else None

    async def set_analysis(
        self,
        skill_id: str,
        experience_level: str,
        analysis: StatisticalAnalysis,
    ) -> bool:
        return await self._set(
            CacheLayer.ANALYSIS,
            analysis_key(skill_id, experience_level),
            analysis.model_dump_json(),
        )

    # ==================== Cache Invalidation ====================

    async def invalidate_bucket(self, skill_id: str, experience_level: str) -> int:
        """
        Drop every cached entry derived from a (skill, level) bucket.

        Returns:
            Number of keys deleted
        """
        try:
            client = await self._ensure_connected()
            if not client:
                return 0

            keys = [analysis_key(skill_id, experience_level)]
            async for key in client.scan_iter(match=f"peer:{skill_id}:{experience_level}:*"):
                keys.append(key)

            return await client.delete(*keys)

        except Exception as e:
            logger.warning(f"Redis delete error: {e}")
            return 0

    # ==================== Health & Stats ====================

    async def health_check(self) -> bool:
        try:
            client = await self._ensure_connected()
            if not client:
                return False

            await client.ping()
            return True

        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """
        Get cache statistics including hit rates.

        Returns:
            Dict with stats per cache layer
        """
        stats = {}

        for layer in CacheLayer:
            hits = self.stats["hits"][layer.layer_name]
            misses = self.stats["misses"][layer.layer_name]
            total = hits + misses

            stats[layer.layer_name] = {
                "hits": hits,
                "misses": misses,
                "total": total,
                "hit_rate": hits / total if total > 0 else 0.0,
            }

        return stats

    async def close(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None


# ==================== Factory Function ====================

_cache_instance: Optional[StatsCache] = None


async def get_cache(redis_url: Optional[str] = None) -> StatsCache:
    """
    Get or create cache singleton.

    Args:
        redis_url: Optional Redis URL (uses settings if not provided)
    """
    global _cache_instance

    if _cache_instance is None:
        url = redis_url or get_settings().redis_url
        _cache_instance = StatsCache(redis_url=url)

    return _cache_instance

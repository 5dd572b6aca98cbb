"""
config.py — Tunable constants for indexing, clustering and ranking.

Defaults live on `EngineConfig`. `EngineConfig.from_env()` overrides them
from CONTENT_INTEL_* environment variables (a local .env file is honoured).
"""

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Dict, Optional

from dotenv import load_dotenv

ENV_PREFIX = "CONTENT_INTEL_"
LOG_FORMAT = "%(levelname)s:%(name)s - %(message)s"


def _default_stage_weights() -> Dict[str, float]:
    return {
        'exact': 1.0,
        'tfidf': 0.8,
        'semantic': 0.7,
        'entity': 0.6,
        'cluster': 0.4,
    }


@dataclass
class EngineConfig:
    # Query engine
    stage_weights: Dict[str, float] = field(default_factory=_default_stage_weights)
    exact_score: float = 1.0
    entity_score: float = 0.8
    cluster_score: float = 0.6
    snippet_length: int = 150
    snippet_lead: int = 50
    snippet_source_chars: int = 500
    max_highlights: int = 5
    words_per_minute: int = 200
    default_limit: int = 10

    # Pairwise similarity (weights sum to 1.0)
    keyword_weight: float = 0.4
    entity_weight: float = 0.3
    tag_weight: float = 0.2
    geo_weight: float = 0.1
    country_match_score: float = 0.8
    keywords_per_document: int = 20

    # Clustering
    semantic_threshold: float = 0.3
    keywords_per_cluster: int = 10
    views_scale: float = 1000.0
    default_quality: float = 0.5
    hub_min_size: int = 3

    # Recommendations
    cluster_relevance: float = 0.8
    location_relevance: float = 0.7
    country_relevance: float = 0.5
    popularity_ceiling: float = 0.5

    # Internal links
    link_threshold: float = 0.3
    hub_relevance: float = 0.8
    max_links: int = 500
    links_per_document: int = 5

    # Result cache
    cache_ttl: int = 60 * 60
    cache_max_items: int = 1024

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'EngineConfig':
        load_dotenv(env_file)
        overrides = {}
        for f in fields(cls):
            if f.name == 'stage_weights':
                continue
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            caster = int if f.type in (int, 'int') else float
            overrides[f.name] = caster(raw)
        weights = _default_stage_weights()
        for stage in weights:
            raw = os.getenv(f"{ENV_PREFIX}WEIGHT_{stage.upper()}")
            if raw is not None:
                weights[stage] = float(raw)
        return cls(stage_weights=weights, **overrides)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)

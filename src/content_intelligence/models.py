"""
models.py — Records exchanged with the content store and downstream renderers.

Documents and query results are frozen, so cached results can be shared
between callers. Clusters stay mutable: optimization trims their member
lists and hub-page assignment fills in `hub_page` after generation.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class EntityMention:
    name: str
    type: str = 'Thing'
    confidence: float = 1.0
    context: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EntityMention':
        return cls(
            name=str(data['name']),
            type=str(data.get('type', 'Thing')),
            confidence=float(data.get('confidence', 1.0)),
            context=str(data.get('context', '')),
        )


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class Document:
    id: str
    title: str
    content: str = ''
    excerpt: str = ''
    tags: Tuple[str, ...] = ()
    entities: Tuple[EntityMention, ...] = ()
    location: Optional[str] = None
    country_code: Optional[str] = None
    topic_cluster: Optional[str] = None
    published: Optional[date] = None
    views: int = 0
    language: str = 'en'
    category: Optional[str] = None
    reading_time: Optional[int] = None
    content_quality: Optional[float] = None

    @property
    def full_text(self) -> str:
        return f'{self.title} {self.excerpt} {self.content}'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Document':
        """
        Build from a content-store record. Accepts both snake_case keys and
        the camelCase keys the blog front matter uses (slug, countryCode, ...).
        """
        doc_id = _pick(data, 'id', 'slug')
        if not doc_id:
            raise ValueError(f"Document record has no id/slug: {data!r}")
        entities = tuple(
            e if isinstance(e, EntityMention) else EntityMention.from_dict(e)
            for e in (data.get('entities') or ())
        )
        reading_time = _pick(data, 'reading_time', 'readingTime')
        quality = _pick(data, 'content_quality', 'contentQuality')
        return cls(
            id=str(doc_id),
            title=str(data.get('title', '')),
            content=str(data.get('content', '')),
            excerpt=str(data.get('excerpt', '')),
            tags=tuple(str(t) for t in (data.get('tags') or ())),
            entities=entities,
            location=_pick(data, 'location'),
            country_code=_pick(data, 'country_code', 'countryCode'),
            topic_cluster=_pick(data, 'topic_cluster', 'topicCluster'),
            published=_parse_date(_pick(data, 'published', 'date')),
            views=int(_pick(data, 'views', default=0)),
            language=str(_pick(data, 'language', default='en')),
            category=_pick(data, 'category'),
            reading_time=int(reading_time) if reading_time is not None else None,
            content_quality=float(quality) if quality is not None else None,
        )


@dataclass
class TopicCluster:
    id: str
    name: str
    description: str
    members: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    centroid: Optional[str] = None
    coherence: float = 0.0
    competitive_strength: float = 0.0
    strategy: str = ''
    min_size: int = 2
    hub_page: Optional[str] = None

    @property
    def quality(self) -> float:
        return self.coherence + self.competitive_strength

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SimilarityEdge:
    """Unordered pair; `source` always sorts before `target`."""
    source: str
    target: str
    score: float

    @classmethod
    def between(cls, a: str, b: str, score: float) -> 'SimilarityEdge':
        if b < a:
            a, b = b, a
        return cls(source=a, target=b, score=score)


@dataclass(frozen=True)
class InternalLink:
    source: str
    target: str
    anchor_text: str
    relevance: float
    origin: str          # cluster | hub | entity | geographic
    placement: str = 'content'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SearchFilters:
    language: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_reading_time: Optional[int] = None
    max_reading_time: Optional[int] = None


@dataclass(frozen=True)
class SearchResult:
    document_id: str
    score: float
    snippet: str
    highlighted_terms: Tuple[str, ...] = ()
    highlights: Tuple[str, ...] = ()
    entity_matches: Tuple[EntityMention, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Recommendation:
    document_id: str
    score: float
    recommendation_type: str   # cluster | entity | geographic | related | popular
    reasoning: str
    title: str = ''
    matching_factors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

"""
Free-text description of an experiment (investigator, lab, title, ...).

Modelled on the MIAME record used by microarray repositories: every field is
optional, nothing is cross-checked against the data, and instances are
immutable value objects that can be shared between containers.

Examples:
    >>> info = ExperimentMetadata(
    ...     name="Alex Sanchez",
    ...     lab="Bioinformatics Lab",
    ...     contact="alex@somemail.com",
    ...     title="Practical Exercise on ExpressionSets",
    ... )
    >>> print(info.render())
    Experiment data
      Experimenter name: Alex Sanchez
      Laboratory: Bioinformatics Lab
      Contact information: alex@somemail.com
      Title: Practical Exercise on ExpressionSets
      URL:
      PMIDs:
      No abstract available.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Mapping, Optional

__all__ = ['ExperimentMetadata']

_TEXT_FIELDS = ('name', 'lab', 'contact', 'title', 'abstract', 'url')


@dataclass(frozen=True)
class ExperimentMetadata:
    """
    Immutable experiment description.

    Attributes:
        name: Experimenter name
        lab: Laboratory
        contact: Contact information (e-mail, address)
        title: Single-sentence experiment title
        abstract: Free-text abstract
        url: URL for further information
        pubmed_ids: PubMed identifiers of related publications
        other: Any further free-text key/value notes
    """

    name: Optional[str] = None
    lab: Optional[str] = None
    contact: Optional[str] = None
    title: Optional[str] = None
    abstract: Optional[str] = None
    url: Optional[str] = None
    pubmed_ids: tuple[str, ...] = ()
    other: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in _TEXT_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise TypeError(
                    f"{name} must be str or None, got {type(value).__name__}"
                )

        if isinstance(self.pubmed_ids, str):
            pubmed_ids = (self.pubmed_ids,)
        else:
            pubmed_ids = tuple(str(p) for p in self.pubmed_ids)
        object.__setattr__(self, 'pubmed_ids', pubmed_ids)

        if not isinstance(self.other, Mapping):
            raise TypeError(f"other must be a mapping, got {type(self.other).__name__}")
        # Read-only snapshot so callers cannot mutate a shared record
        object.__setattr__(
            self, 'other', MappingProxyType({str(k): str(v) for k, v in self.other.items()})
        )

    def __hash__(self) -> int:
        return hash((
            tuple(getattr(self, name) for name in _TEXT_FIELDS),
            self.pubmed_ids,
            tuple(sorted(self.other.items())),
        ))

    def is_empty(self) -> bool:
        """True if no field carries any information."""
        return (
            all(getattr(self, name) in (None, "") for name in _TEXT_FIELDS)
            and not self.pubmed_ids
            and not self.other
        )

    def render(self) -> str:
        """Human-readable multi-line summary."""
        lines = [
            "Experiment data",
            f"  Experimenter name: {self.name or ''}".rstrip(),
            f"  Laboratory: {self.lab or ''}".rstrip(),
            f"  Contact information: {self.contact or ''}".rstrip(),
            f"  Title: {self.title or ''}".rstrip(),
            f"  URL: {self.url or ''}".rstrip(),
            f"  PMIDs: {' '.join(self.pubmed_ids)}".rstrip(),
        ]
        if self.abstract:
            lines.append(f"  Abstract: A {len(self.abstract.split())} word abstract is available.")
        else:
            lines.append("  No abstract available.")
        if self.other:
            lines.append(f"  Information is available on: {', '.join(self.other)}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Plain dict suitable for JSON/YAML serialisation."""
        out: dict[str, Any] = {name: getattr(self, name) for name in _TEXT_FIELDS}
        out['pubmed_ids'] = list(self.pubmed_ids)
        out['other'] = dict(self.other)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExperimentMetadata:
        """
        Build a record from a mapping.

        Keys that are not fields of the record are kept under ``other``
        rather than rejected, so hand-written YAML with extra notes loads.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        if extra:
            other = dict(kwargs.get('other') or {})
            other.update(extra)
            kwargs['other'] = other
        if kwargs.get('other') is None:
            kwargs.pop('other', None)
        if kwargs.get('pubmed_ids') is None:
            kwargs.pop('pubmed_ids', None)
        return cls(**kwargs)

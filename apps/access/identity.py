"""
Caller identity canonicalization.

Grants in the catalog are keyed by UserId, which historically holds either a
numeric user id or an email address for the same person. The identity handed
in by authentication is parsed once into an ``Identity`` and every catalog
query matches against all of its lookup keys.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

NUMERIC = 'numeric'
OPAQUE = 'opaque'


@dataclass(frozen=True)
class Identity:
    """Tagged caller identity: ``numeric`` when the raw value is a positive integer."""

    raw: str
    numeric_id: Optional[int] = None

    @property
    def kind(self) -> str:
        return NUMERIC if self.numeric_id is not None else OPAQUE

    @property
    def is_empty(self) -> bool:
        return not self.raw

    @property
    def lookup_keys(self) -> Tuple[str, ...]:
        """
        String forms a stored UserId may take for this identity.

        The numeric form is listed first; it differs from ``raw`` when the
        token carried padding such as '007'.
        """
        if self.is_empty:
            return ()
        keys = []
        if self.numeric_id is not None:
            keys.append(str(self.numeric_id))
        if self.raw not in keys:
            keys.append(self.raw)
        return tuple(keys)

    def __str__(self):
        return self.raw


def parse_identity(value) -> Identity:
    """
    Canonicalize an identity value from the authentication layer. Never raises.

    Examples:
        >>> parse_identity(' 42 ')
        Identity(raw='42', numeric_id=42)
        >>> parse_identity('officer@example.org').kind
        'opaque'
    """
    if isinstance(value, Identity):
        return value
    if value is None or isinstance(value, bool):
        return Identity(raw='')

    raw = str(value).strip()
    numeric_id = None
    if raw.isascii() and raw.isdigit():
        number = int(raw)
        if number > 0:
            numeric_id = number
    return Identity(raw=raw, numeric_id=numeric_id)

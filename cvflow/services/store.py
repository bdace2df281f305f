import logging
import uuid

from ..models.candidate import Candidate

logger = logging.getLogger(__name__)


def canonical_id(raw):
    """32-char hex form of a UUID-like id, or None when ``raw`` is not one."""
    try:
        return uuid.UUID(str(raw).strip()).hex
    except (ValueError, AttributeError, TypeError):
        return None


class CandidateStore:
    """Persistence boundary for candidate records over an explicit session."""

    def __init__(self, session):
        self.session = session

    def insert(self, fields) -> Candidate:
        c = Candidate(id=uuid.uuid4().hex, **fields)
        self.session.add(c)
        self.session.commit()
        logger.info("candidate inserted id=%s", c.id)
        return c

    def get(self, candidate_id):
        if candidate_id is None:
            return None
        return self.session.get(Candidate, str(candidate_id))

    def get_tolerant(self, raw_id):
        """Canonical id first, then the raw value as stored."""
        canonical = canonical_id(raw_id)
        if canonical:
            found = self.get(canonical)
            if found is not None:
                return found
        return self.get(raw_id)

    def find_one(self, **filters):
        return self.session.query(Candidate).filter_by(**filters).first()

    def find_all(self, **filters):
        return (self.session.query(Candidate)
                .filter_by(**filters)
                .order_by(Candidate.created_at.desc(), Candidate.id)
                .all())

    def update_fields(self, candidate_id, fields, expect=None) -> bool:
        """Single UPDATE keyed by id, optionally guarded by expected column values.

        Returns False when no row matched (missing id or a guard failed).
        """
        q = self.session.query(Candidate).filter(Candidate.id == str(candidate_id))
        for column, value in (expect or {}).items():
            q = q.filter(getattr(Candidate, column) == value)
        n = q.update(fields, synchronize_session="fetch")
        self.session.commit()
        return n > 0

    def delete(self, candidate_id) -> bool:
        n = self.session.query(Candidate).filter(Candidate.id == str(candidate_id)).delete()
        self.session.commit()
        return n > 0

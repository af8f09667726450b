class PriorityEngineError(Exception):
    """Base class for priority engine failures."""


class ScoringRulesError(PriorityEngineError):
    """Raised when a scoring rules document is invalid."""


class VipContactNotFoundError(PriorityEngineError):
    """Raised by the HTTP surface when a VIP contact id is unknown."""

    def __init__(self, contact_id: str):
        super().__init__(f"VIP contact not found: {contact_id}")
        self.contact_id = contact_id

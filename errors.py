"""Domain errors raised by the record service and the store."""


class PortalError(Exception):
    """Base class for portal errors."""


class NotFoundError(PortalError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class EnquiryResolvedError(PortalError):
    """A status change was requested on an enquiry that is no longer pending."""

    def __init__(self, eoi_id: str, status: str):
        self.eoi_id = eoi_id
        self.status = status
        super().__init__(f"Enquiry {eoi_id} is already {status}")


class StorageCorruptError(PortalError):
    """A stored collection could not be decoded. Never leaves the store."""

    def __init__(self, key: str, reason: str = ""):
        self.key = key
        super().__init__(f"Stored value for {key!r} is unreadable{': ' + reason if reason else ''}")

"""
Service Exceptions

Malformed stored data never raises; these cover the failures the caller
has to deal with.
"""


class StoreError(Exception):
    """The store cannot be opened, read or written. Always fatal."""


class RecordNotFound(Exception):
    """No record with the requested id exists in the collection."""

    def __init__(self, collection, record_id):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record '{record_id}' not found")


class RecordInUseError(Exception):
    """The record is still referenced and cannot be deleted."""

    def __init__(self, collection, record_id, referenced_by):
        self.collection = collection
        self.record_id = record_id
        self.referenced_by = list(referenced_by)
        super().__init__(
            f"{collection} record '{record_id}' is used by {len(self.referenced_by)} record(s)"
        )


class ValidationError(Exception):
    """Form input failed validation. errors maps field name -> message."""

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__('; '.join(f"{key}: {msg}" for key, msg in self.errors.items()))

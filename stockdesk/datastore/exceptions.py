class DataStoreError(Exception):
    """Base error raised by the data store tiers"""


class DataStoreUnavailable(DataStoreError):
    """A store tier could not complete the call"""


class RecordNotFound(DataStoreError):
    """The referenced product does not exist in the active store"""

    def __init__(self, record_id):
        super().__init__(f"Record not found: {record_id}")
        self.record_id = record_id

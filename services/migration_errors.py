"""
Exceptions raised by the tenant migration tooling.

Fatal errors (credentials, anything escaping the step sequence) abort the
run. MalformedDocumentError is per-record and always caught by the pass
that raised it.
"""


class MigrationError(Exception):
    """Base class for migration failures"""


class CredentialsNotFoundError(MigrationError):
    """The Firebase service-account file is missing"""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Service account file not found at: {path}")


class MalformedDocumentError(MigrationError):
    """A document could not be read as a mapping of fields"""

    def __init__(self, doc_id: str, reason: str = "document data is not a mapping"):
        self.doc_id = doc_id
        super().__init__(f"{reason} (document {doc_id})")


class OrganizationNotFoundError(MigrationError):
    """No organization carries the expected slug"""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"No organization found with slug '{slug}'")

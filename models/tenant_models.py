from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime

# ============================================================================
# ORGANIZATION (TENANT)
# ============================================================================

class OrganizationSettings(BaseModel):
    """Locale settings applied to every portal of the organization"""
    timezone: str = "UTC"
    currency: str = "USD"
    language: str = "en"
    dateFormat: str = "MM/DD/YYYY"

    model_config = ConfigDict(extra='allow')

class OrganizationSubscription(BaseModel):
    plan: str = Field(default="enterprise", description="Subscription plan")
    status: str = Field(default="active", description="Subscription status")

    model_config = ConfigDict(extra='allow')

class OrganizationLimits(BaseModel):
    """Resource limits, -1 means unlimited"""
    maxUsers: int = -1
    maxProjects: int = -1
    maxStorage: int = -1

    model_config = ConfigDict(extra='allow')

class Organization(BaseModel):
    """Organization model - the tenant boundary for all business data"""
    id: Optional[str] = Field(default=None, description="Firestore document id, assigned on create")
    name: str = Field(default="MAS Business", description="Display name")
    slug: str = Field(default="default-org", description="Unique slug across all organizations")
    description: str = Field(default="", description="Free-form description")
    settings: OrganizationSettings = Field(default_factory=OrganizationSettings)
    subscription: OrganizationSubscription = Field(default_factory=OrganizationSubscription)
    limits: OrganizationLimits = Field(default_factory=OrganizationLimits)
    active: bool = True
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra='allow'
    )

    def to_document(self, timestamp: Any) -> Dict[str, Any]:
        """Firestore payload; id is the document key, not a field"""
        data = self.model_dump(exclude={"id", "createdAt", "updatedAt"})
        data["createdAt"] = timestamp
        data["updatedAt"] = timestamp
        return data

# ============================================================================
# MEMBERSHIP
# ============================================================================

class OrganizationMembership(BaseModel):
    """Entry of users/{uid}.organizations[organizationId]"""
    roles: List[str] = Field(default_factory=lambda: ["employee"])
    joinedAt: Any = None
    active: bool = True

class UserOrganization(BaseModel):
    """
    Membership record stored at userOrganizations/{userId}_{organizationId}.

    Denormalized copy of the user's roles, department and position so that
    access checks inside an organization do not load the full user document.
    """
    userId: str
    organizationId: str
    roles: List[str] = Field(default_factory=lambda: ["employee"])
    department: str = ""
    position: str = ""
    joinedAt: Any = None
    active: bool = True

    @staticmethod
    def document_id(user_id: str, organization_id: str) -> str:
        return f"{user_id}_{organization_id}"

    @property
    def key(self) -> str:
        return self.document_id(self.userId, self.organizationId)

# ============================================================================
# AUTH USER PROFILE
# ============================================================================

class PortalAccess(BaseModel):
    admin: bool = False
    employee: bool = False
    client: List[str] = Field(default_factory=list)
    candidate: bool = False

    model_config = ConfigDict(extra='allow')

class UserMetadata(BaseModel):
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    lastLoginAt: Optional[datetime] = None

class AuthUserProfile(BaseModel):
    """users/{uid} document materialised from a Firebase Auth account"""
    id: str
    email: Optional[str] = None
    displayName: str = ""
    roles: List[str] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)
    portalAccess: PortalAccess = Field(default_factory=PortalAccess)
    department: str = ""
    employeeCode: str = ""
    phoneNumber: str = ""
    photoURL: str = ""
    isActive: bool = True
    emailVerified: bool = False
    metadata: UserMetadata = Field(default_factory=UserMetadata)

# ============================================================================
# RUN STATISTICS
# ============================================================================

class OrganizationStats(BaseModel):
    created: int = 0
    existing: int = 0

class CollectionStats(BaseModel):
    migrated: int = 0
    failed: int = 0

    def merge(self, other: "CollectionStats") -> "CollectionStats":
        self.migrated += other.migrated
        self.failed += other.failed
        return self

class ClaimStats(BaseModel):
    updated: int = 0
    skipped: int = 0
    failed: int = 0

class MigrationStats(BaseModel):
    """In-memory statistics for one migration run, never persisted"""
    organization_id: Optional[str] = None
    organizations: OrganizationStats = Field(default_factory=OrganizationStats)
    users: CollectionStats = Field(default_factory=CollectionStats)
    projects: CollectionStats = Field(default_factory=CollectionStats)
    tasks: CollectionStats = Field(default_factory=CollectionStats)
    invoices: CollectionStats = Field(default_factory=CollectionStats)
    tickets: CollectionStats = Field(default_factory=CollectionStats)
    claims: ClaimStats = Field(default_factory=ClaimStats)
    errors: List[str] = Field(default_factory=list)

    # Collections configured beyond the four defaults land here
    other: Dict[str, CollectionStats] = Field(default_factory=dict)

    def for_collection(self, collection_name: str) -> CollectionStats:
        """Counter for a taggable collection"""
        if collection_name in ("projects", "tasks", "invoices", "tickets"):
            return getattr(self, collection_name)
        return self.other.setdefault(collection_name, CollectionStats())

class SyncStats(BaseModel):
    """Statistics for one Auth -> Firestore user sync"""
    synced: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)

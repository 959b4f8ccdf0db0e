# agencyhub/models/registry.py
# Importing this module registers every model on Base.metadata
# (used by Alembic autogenerate and test fixtures).
from agencyhub.models.tenant import Tenant
from agencyhub.models.permission_catalog import PermissionCatalog
from agencyhub.models.tenant_role import TenantRole, TenantRolePermission
from agencyhub.models.team_member import TeamMember
from agencyhub.models.client import Client
from agencyhub.models.custom_request import CustomRequest
from agencyhub.models.content_upload import ContentUpload
from agencyhub.models.custom_note import CustomNote
from agencyhub.models.sale import Sale

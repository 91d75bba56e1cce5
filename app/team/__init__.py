from .models import TeamMember, TeamRole
from .schemas import TeamMemberCreate, TeamMemberUpdate, TeamMemberResponse, TeamRoleCreate, TeamRoleUpdate, TeamRoleResponse
from .crud import DEPARTMENTS, PERMISSIONS, DEFAULT_ROLES

# Router last to avoid a circular import
from .routes import router

from fastapi import Depends, HTTPException

from worklog.core.identity import Caller, Role
from worklog.deps.auth import require_auth

__all__ = ["Caller", "Role", "require_role"]


def require_role(role: Role):
    def dependency(caller: Caller = Depends(require_auth)) -> Caller:
        if caller.role is not role:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return caller

    return dependency

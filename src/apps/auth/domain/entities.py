from dataclasses import dataclass


@dataclass(frozen=True)
class CallerContext:
    """Проверенный вызывающий: пользователь и его роль."""
    
    user_id: int
    role: str
    
    def has_role(self, *roles: str) -> bool:
        return self.role in roles

"""AppUser model - shop users with username/password authentication."""
from sqlalchemy import Column, BigInteger, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from invoicer.database import Base
import enum


class UserRole(enum.Enum):
    """User role enum. Admin sees every section, Billing Staff only billing."""
    ADMIN = "Admin"
    STAFF = "Billing Staff"


def normalize_user_role(value) -> UserRole:
    """Accept "Admin", "Billing Staff", "ADMIN", "STAFF" or the enum itself."""
    if isinstance(value, UserRole):
        return value

    normalized = str(value or '').strip().upper()
    for member in UserRole:
        if normalized in (member.name, member.value.upper()):
            return member

    raise ValueError(f"Invalid role: {value}. Must be 'Admin' or 'Billing Staff'.")


class AppUser(Base):
    """AppUser model - people who sign in to the shop."""

    __tablename__ = 'app_user'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    username = Column(String(80), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, name='user_role'), nullable=False, default=UserRole.STAFF)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role.value,
        }

    def __repr__(self):
        return f"<AppUser(id={self.id}, username='{self.username}', role={self.role.value})>"

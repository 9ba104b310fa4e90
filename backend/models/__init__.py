"""Sample record types for the Excel import/export engine."""
from backend.models.dept import SysDept
from backend.models.user import SysUser

__all__ = ['SysDept', 'SysUser']

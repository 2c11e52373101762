from models.base import Base, utc_now_iso
from models.media import MediaRecord
from models.membership import MembershipRecord

__all__ = [
    'Base', 'utc_now_iso',
    'MediaRecord',
    'MembershipRecord',
]

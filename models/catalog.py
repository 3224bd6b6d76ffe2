"""Master data catalog models: Category -> Activity -> Sub-Task"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


# Units offered by the master data forms. Other values are kept as free text.
UNITS = ('No', 'm', 'Sq.m', 'Item', 'Set', 'Point', 'Nos')
DEFAULT_UNIT = 'No'

CATEGORY_CODE_MAX_LENGTH = 10


@dataclass
class MasterCategory:
    id: int
    code: str
    name: str
    description: Optional[str] = None
    order: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'description': self.description,
            'order': self.order,
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f'<MasterCategory {self.code}>'


@dataclass
class MasterActivity:
    id: int
    category_id: int  # back-reference, lookup only
    code: str
    name: str
    description: Optional[str] = None
    default_unit: str = DEFAULT_UNIT
    order: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'masterCategoryId': self.category_id,
            'code': self.code,
            'name': self.name,
            'description': self.description,
            'defaultUnit': self.default_unit,
            'order': self.order,
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f'<MasterActivity {self.code}>'


@dataclass
class MasterSubTask:
    id: int
    activity_id: int  # back-reference, lookup only
    name: str
    description: Optional[str] = None
    default_productivity: float = 0.0  # unit quantity per manhour
    unit: str = DEFAULT_UNIT
    order: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'masterActivityId': self.activity_id,
            'name': self.name,
            'description': self.description,
            'defaultProductivity': self.default_productivity,
            'unit': self.unit,
            'order': self.order,
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f'<MasterSubTask {self.name}>'

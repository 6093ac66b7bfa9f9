from typing import List
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.building import Building
from db.models.user import UserRole
from utils.errors import NotFoundError, PermissionDeniedError, ValidationError


def list_buildings(user) -> List[Building]:
    q = Building.query.filter_by(is_active=True)
    if not user.has_role(UserRole.ADMIN):
        q = q.filter_by(property_manager_id=user.id)
    return q.order_by(Building.name.asc()).all()


def get_owned_building(user, building_id: int) -> Building:
    b = db.session.get(Building, int(building_id))
    if not b or not b.is_active:
        raise NotFoundError("Building not found.")
    if b.property_manager_id != user.id and not user.has_role(UserRole.ADMIN):
        raise PermissionDeniedError("You can only use your own buildings.")
    return b


def create_building(user, name: str, address: str) -> Building:
    if not user.has_role(UserRole.PROPERTY_MANAGER):
        raise PermissionDeniedError("Only Property Managers can add buildings.")
    name = (name or "").strip()
    address = (address or "").strip()
    if not name:
        raise ValidationError("Building name is required.")
    if len(address) < 5:
        raise ValidationError("Building address is required.")
    b = Building(name=name, address=address, property_manager_id=user.id)
    db.session.add(b)
    _commit()
    return b


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

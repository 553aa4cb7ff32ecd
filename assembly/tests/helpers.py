from django.contrib.auth.hashers import make_password

from assembly.models import Product, Batch, SerializedItem
from assembly.stages import STAGE_SEQUENCE
from assembly.services import AssemblyService
from main.models import User
from main.services.auth_service import AuthService


PASSWORD = "test1234"


def make_user(role=User.RoleChoices.SUPERVISOR, email=None, first_name="Test"):
    email = email or f"{role.lower()}{User.objects.count() + 1}@armory.test"
    return User.objects.create(
        first_name=first_name,
        last_name=role.title(),
        email=email,
        password=make_password(PASSWORD),
        role=role,
        status=User.UserStatus.ACTIVE,
    )


def login_token(user):
    result = AuthService.login(user.email, PASSWORD, "127.0.0.1")
    assert result["success"], result["message"]
    return result["token"]


def make_product(name="Compact 9", model_number="C9-100"):
    return Product.objects.create(name=name, model_number=model_number)


def make_batch(product=None, name="B-001", quantity=3, serials=None, created_by=None):
    product = product or make_product()
    batch = Batch.objects.create(name=name, product=product, quantity=quantity, created_by=created_by)
    for serial in serials or []:
        SerializedItem.objects.create(batch=batch, serial_number=serial)
    return batch


def complete_stages(unit, user, count=None):
    """Walk a unit through the first `count` stages (all of them by default)."""
    for stage in STAGE_SEQUENCE[:count]:
        AssemblyService.mark_stage_complete(unit.id, stage, actor=user)
    unit.refresh_from_db()
    return unit

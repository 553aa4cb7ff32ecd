"""
Product Service - Product catalogue that batches are built against
"""
import logging
from typing import Dict, Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator

from assembly.models import Product
from assembly.services.base_service import (
    BaseService, success_response, ValidationError, isoformat, clean_text
)


logger = logging.getLogger(__name__)


class ProductService(BaseService):
    model = Product

    @classmethod
    def serialize(cls, product: Product) -> Dict[str, Any]:
        return {
            "id": product.id,
            "uuid": str(product.uuid),
            "name": product.name,
            "model_number": product.model_number,
            "description": product.description,
            "image_url": product.image_url or None,
            "created_at": isoformat(product.created_at),
            "updated_at": isoformat(product.updated_at),
        }

    @classmethod
    def serialize_brief(cls, product: Product) -> Dict[str, Any]:
        return {
            "id": product.id,
            "name": product.name,
            "model_number": product.model_number,
        }

    @classmethod
    def get_all_products(cls) -> Dict[str, Any]:
        products = cls.model.objects.order_by("-created_at", "-id")
        return success_response({
            "products": [cls.serialize(p) for p in products],
            "count": len(products),
        })

    @classmethod
    def get_product(cls, product_id: int) -> Dict[str, Any]:
        product = cls.get_or_404(product_id)
        return success_response({"product": cls.serialize(product)})

    @classmethod
    def create_product(cls,
                       name: str,
                       model_number: str,
                       description: str = "",
                       image_url: str = "",
                       actor=None) -> Dict[str, Any]:
        cls.authorize(actor, "manage_products")

        name = clean_text(name, "name", "Product name")
        model_number = clean_text(model_number, "model_number", "Model number")
        description = clean_text(description, "description", "Description", required=False)
        image_url = clean_text(image_url, "image_url", "Image URL", required=False)

        if image_url:
            try:
                URLValidator()(image_url)
            except DjangoValidationError:
                raise ValidationError("Image URL must be a valid URL", field="image_url")

        product = cls.model.objects.create(
            name=name,
            model_number=model_number,
            description=description,
            image_url=image_url,
        )
        logger.info("Product %s (%s) created by user %s", product.id, product.model_number, actor.id)

        return success_response({"product": cls.serialize(product)}, "Product created")

    @classmethod
    def rename_product(cls, product_id: int, name: str, actor=None) -> Dict[str, Any]:
        cls.authorize(actor, "manage_products")

        name = clean_text(name, "name", "Product name")

        product = cls.get_or_404(product_id)
        product.name = name
        product.save(update_fields=["name", "updated_at"])

        return success_response({"product": cls.serialize(product)}, "Product renamed")

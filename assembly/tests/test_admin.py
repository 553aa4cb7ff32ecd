from django.contrib import admin
from django.test import RequestFactory, TestCase

from assembly.admin import SerializedItemInline
from assembly.models import Batch, SerializedItem

from .helpers import make_batch


class AdminLockdownTests(TestCase):

    def setUp(self):
        self.request = RequestFactory().get("/admin/")
        self.batch = make_batch(quantity=1, serials=["60001"])
        self.unit = SerializedItem.objects.get()

    def test_unit_identity_is_read_only_once_saved(self):
        unit_admin = admin.site._registry[SerializedItem]
        readonly = unit_admin.get_readonly_fields(self.request, self.unit)

        self.assertIn("serial_number", readonly)
        self.assertIn("batch", readonly)

    def test_batch_shape_is_read_only_once_saved(self):
        batch_admin = admin.site._registry[Batch]
        readonly = batch_admin.get_readonly_fields(self.request, self.batch)

        self.assertIn("product", readonly)
        self.assertIn("quantity", readonly)

    def test_no_add_or_delete_for_batches_and_units(self):
        for model in (Batch, SerializedItem):
            model_admin = admin.site._registry[model]
            self.assertFalse(model_admin.has_add_permission(self.request))
            self.assertFalse(model_admin.has_delete_permission(self.request, None))

    def test_unit_inline_cannot_add_or_edit_serials(self):
        inline = SerializedItemInline(Batch, admin.site)

        self.assertFalse(inline.has_add_permission(self.request, self.batch))
        self.assertFalse(inline.can_delete)
        self.assertIn("serial_number", inline.get_readonly_fields(self.request, self.batch))

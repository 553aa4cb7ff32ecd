import json

from django.test import TestCase
from django.urls import reverse

from assembly.models import Batch, SerializedItem
from main.models import User

from .helpers import make_user, make_product, make_batch, login_token


class AssemblyAPITestCase(TestCase):

    def setUp(self):
        self.supervisor = make_user(User.RoleChoices.SUPERVISOR)
        self.token = login_token(self.supervisor)
        self.product = make_product()

    def auth(self, token=None):
        return {"HTTP_AUTHORIZATION": f"Bearer {token or self.token}"}

    def get(self, url, token=None, **params):
        return self.client.get(url, params, **self.auth(token))

    def post(self, url, data, token=None):
        return self.client.post(url, json.dumps(data), content_type="application/json", **self.auth(token))


class AuthRequiredTests(AssemblyAPITestCase):

    def test_missing_token(self):
        response = self.client.get(reverse("assembly:batch-list"))

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "unauthorized")

    def test_bad_token(self):
        response = self.get(reverse("assembly:batch-list"), token="not-a-jwt")
        self.assertEqual(response.status_code, 401)

    def test_viewer_cannot_complete_stage(self):
        make_batch(product=self.product, quantity=1, serials=["10001"])
        unit = SerializedItem.objects.get()
        viewer_token = login_token(make_user(User.RoleChoices.VIEWER))

        response = self.post(
            reverse("assembly:unit-complete", args=[unit.id]), {"stage": "LAP_AND_CLEAN"}, token=viewer_token
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"]["code"], "forbidden")

    def test_assembler_cannot_open_dashboard(self):
        assembler_token = login_token(make_user(User.RoleChoices.ASSEMBLER))
        response = self.get(reverse("assembly:dashboard-wip"), token=assembler_token)
        self.assertEqual(response.status_code, 403)


class BatchAPITests(AssemblyAPITestCase):

    def test_create_and_fetch_batch(self):
        response = self.post(reverse("assembly:batch-list"), {
            "name": "B-200",
            "product_id": self.product.id,
            "quantity": 2,
            "serial_numbers": ["10010", "10020"],
        })

        self.assertEqual(response.status_code, 201)
        batch_id = response.json()["batch"]["id"]

        response = self.get(reverse("assembly:batch-detail", args=[batch_id]))
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["batch"]["progress_percent"], 0)
        self.assertEqual(len(body["batch"]["serialized_items"]), 2)

    def test_quantity_as_string_is_accepted(self):
        response = self.post(reverse("assembly:batch-list"), {
            "name": "B-201", "product_id": str(self.product.id), "quantity": "3",
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Batch.objects.get().quantity, 3)

    def test_serial_count_mismatch(self):
        response = self.post(reverse("assembly:batch-list"), {
            "name": "B-202",
            "product_id": self.product.id,
            "quantity": 2,
            "serial_numbers": ["10001", "10002", "10003"],
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "validation_error")
        self.assertFalse(Batch.objects.exists())

    def test_serial_conflict(self):
        make_batch(product=self.product, quantity=1, serials=["99999"])

        response = self.post(reverse("assembly:batch-list"), {
            "name": "B-203", "product_id": self.product.id, "quantity": 1, "serial_numbers": ["99999"],
        })

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "conflict")
        self.assertEqual(response.json()["error"]["details"]["existing"], ["99999"])

    def test_missing_batch(self):
        response = self.get(reverse("assembly:batch-detail", args=[4040]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "not_found")

    def test_assign_serials(self):
        batch = make_batch(product=self.product, quantity=2)
        response = self.post(reverse("assembly:batch-serials", args=[batch.id]), {"serial_numbers": "30001,30002"})

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["batch"]["item_count"], 2)

    def test_malformed_json(self):
        response = self.client.post(
            reverse("assembly:batch-list"), "{not json", content_type="application/json", **self.auth()
        )
        self.assertEqual(response.status_code, 400)

    def test_body_must_be_an_object(self):
        response = self.post(reverse("assembly:batch-list"), ["B-001"])

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "validation_error")

    def test_numeric_name_is_refused(self):
        response = self.post(reverse("assembly:batch-list"), {"name": 123, "product_id": self.product.id, "quantity": 1})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["field"], "name")
        self.assertEqual(Batch.objects.count(), 0)


class UnitAPITests(AssemblyAPITestCase):

    def setUp(self):
        super().setUp()
        make_batch(product=self.product, quantity=1, serials=["50001"])
        self.unit = SerializedItem.objects.get()

    def test_complete_then_read_progress(self):
        response = self.post(reverse("assembly:unit-complete", args=[self.unit.id]), {"stage": "LAP_AND_CLEAN"})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["unit"]["current_stage"], "PIN_EJECTOR")

        response = self.get(reverse("assembly:unit-serial-progress", args=["50001"]))
        stages = response.json()["stages"]
        self.assertEqual(stages[0]["status"], "complete")
        self.assertEqual(stages[1]["status"], "in_progress")

    def test_out_of_order_completion(self):
        response = self.post(reverse("assembly:unit-complete", args=[self.unit.id]), {"stage": "FIT_BARREL"})

        self.assertEqual(response.status_code, 409)
        error = response.json()["error"]
        self.assertEqual(error["code"], "invalid_transition")
        self.assertEqual(error["details"]["expected_stage"], "LAP_AND_CLEAN")

    def test_reject_requires_notes(self):
        response = self.post(reverse("assembly:unit-reject", args=[self.unit.id]), {"stage": "LAP_AND_CLEAN"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["field"], "notes")

    def test_reject_and_read_details(self):
        self.post(reverse("assembly:unit-reject", args=[self.unit.id]), {"stage": "LAP_AND_CLEAN", "notes": "Pitting"})

        response = self.get(reverse("assembly:unit-detail", args=[self.unit.id]))
        unit = response.json()["unit"]
        self.assertEqual(unit["status"], "NOT_STARTED")
        self.assertEqual(unit["stage_logs"][0]["status"], "REJECTED")

        history = self.get(reverse("assembly:unit-history", args=[self.unit.id]), status="REJECTED").json()
        self.assertEqual(len(history["logs"]), 1)

    def test_stage_given_as_list(self):
        response = self.post(reverse("assembly:unit-complete", args=[self.unit.id]), {"stage": ["LAP_AND_CLEAN"]})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "validation_error")

    def test_stage_given_as_object(self):
        response = self.post(
            reverse("assembly:unit-reject", args=[self.unit.id]), {"stage": {"a": 1}, "notes": "x"}
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["code"], "validation_error")
        self.assertFalse(self.unit.stage_logs.exists())

    def test_unknown_unit(self):
        response = self.get(reverse("assembly:unit-progress", args=[4040]))
        self.assertEqual(response.status_code, 404)


class DashboardAPITests(AssemblyAPITestCase):

    def test_wip_returns_every_stage(self):
        response = self.get(reverse("assembly:dashboard-wip"))
        self.assertEqual(len(response.json()["wip_by_stage"]), 11)

    def test_period_defaults_to_all_time(self):
        response = self.get(reverse("assembly:dashboard-production"))
        self.assertEqual(response.json()["window"]["period"], "all_time")

    def test_unknown_period(self):
        response = self.get(reverse("assembly:dashboard-rejections"), period="fortnight")
        self.assertEqual(response.status_code, 400)

    def test_overview(self):
        response = self.get(reverse("assembly:dashboard"), period="this_week")
        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertIn("production", body)
        self.assertIn("wip", body)


class ProductAPITests(AssemblyAPITestCase):

    def test_create_list_and_rename(self):
        response = self.post(reverse("assembly:product-list"), {"name": "Service 45", "model_number": "S45"})
        self.assertEqual(response.status_code, 201)
        product_id = response.json()["product"]["id"]

        response = self.client.patch(
            reverse("assembly:product-detail", args=[product_id]),
            json.dumps({"name": "Service 45 Mk II"}),
            content_type="application/json",
            **self.auth()
        )
        self.assertEqual(response.json()["product"]["name"], "Service 45 Mk II")

        products = self.get(reverse("assembly:product-list")).json()["products"]
        self.assertEqual(len(products), 2)

    def test_numeric_name_is_refused(self):
        response = self.post(reverse("assembly:product-list"), {"name": 5, "model_number": "S45"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"]["details"]["field"], "name")

    def test_bad_image_url(self):
        response = self.post(reverse("assembly:product-list"), {
            "name": "Service 45", "model_number": "S45", "image_url": "not a url",
        })
        self.assertEqual(response.status_code, 400)


class StageListAPITests(AssemblyAPITestCase):

    def test_lists_sequence(self):
        stages = self.get(reverse("assembly:stage-list")).json()["stages"]
        self.assertEqual(stages[0]["stage"], "LAP_AND_CLEAN")
        self.assertEqual(len(stages), 11)

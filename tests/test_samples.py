import datetime
from pathlib import Path

import pytest

from api_explorer.parser.base import (
    ArraySchema,
    Endpoint,
    ObjectSchema,
    Parameter,
    PrimitiveSchema,
    ReferenceSchema,
    RequestBody,
)
from api_explorer.parser.loader import load_document, load_spec
from api_explorer.parser.openapi import normalize
from api_explorer.search.samples import DEFAULT_BASE_URL, example_value, generate_sample

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def petstore():
    return load_spec(FIXTURES / "petstore.yaml")


class TestExampleValue:
    def test_schema_example_wins(self):
        assert example_value(PrimitiveSchema(type="string", example="Rex"), "name") == "Rex"

    def test_default_then_enum(self):
        assert example_value(PrimitiveSchema(type="string", default="x", enum=("a", "b"))) == "x"
        assert example_value(PrimitiveSchema(type="string", enum=("a", "b"))) == "a"

    def test_name_hints(self):
        assert example_value(PrimitiveSchema(type="string"), "email") == "user@example.com"
        assert example_value(PrimitiveSchema(type="string"), "petId") == "id_12345"
        assert example_value(PrimitiveSchema(type="integer"), "id") == 12345
        assert example_value(PrimitiveSchema(type="string"), "firstName") == "John"
        assert example_value(PrimitiveSchema(type="integer"), "limit") == 25

    def test_type_fallbacks(self):
        assert example_value(PrimitiveSchema(type="integer")) == 123
        assert example_value(PrimitiveSchema(type="integer", format="int64")) == 1000000000
        assert example_value(PrimitiveSchema(type="boolean")) is True
        assert example_value(PrimitiveSchema(type="string", format="date")) == "2024-12-31"
        assert example_value(PrimitiveSchema()) == "sample_string"

    def test_containers(self):
        obj = ObjectSchema(properties={"id": PrimitiveSchema(type="integer"), "tags": ArraySchema()})
        assert example_value(obj) == {"id": 12345, "tags": ["sample_string"]}
        assert example_value(ObjectSchema()) == {"key": "value"}
        assert example_value(ReferenceSchema(ref="#/components/schemas/Pet")) == {}

    def test_depth_is_bounded(self):
        schema = PrimitiveSchema(type="string")
        for _ in range(10):
            schema = ObjectSchema(properties={"child": schema})
        value = example_value(schema)
        depth = 0
        while value:
            value = value["child"]
            depth += 1
        assert depth == 4


class TestGenerateSample:
    def test_curl_with_body_and_auth(self, petstore):
        sample = generate_sample(petstore.get_endpoint("createpet"), "curl")
        assert sample.startswith("# Create a pet\n")
        assert 'curl -X POST "https://petstore.example.com/v1/pets"' in sample
        assert '-H "Content-Type: application/json"' in sample
        assert '-H "Authorization: Bearer YOUR_ACCESS_TOKEN"' in sample
        assert '"status": "available"' in sample

    def test_path_and_header_parameters(self, petstore):
        sample = generate_sample(petstore.get_endpoint("showpetbyid"), "curl")
        assert "https://petstore.example.com/v1/pets/id_12345" in sample
        assert '-H "X-Request-Id: id_12345"' in sample
        assert "Authorization" not in sample

    def test_query_string(self, petstore):
        sample = generate_sample(petstore.get_endpoint("listpets"), "python")
        assert "url = 'https://petstore.example.com/v1/pets?limit=25'" in sample
        assert "requests.request('GET', url, headers=headers)" in sample

    def test_python_body(self, petstore):
        sample = generate_sample(petstore.get_endpoint("createpet"), "python")
        assert "payload = {'id': 12345, 'name': 'Example Name', 'status': 'available'}" in sample
        assert "json=payload" in sample

    def test_javascript(self, petstore):
        sample = generate_sample(petstore.get_endpoint("deletepet"), "javascript")
        assert "fetch('https://petstore.example.com/v1/pets/id_12345'" in sample
        assert "method: 'DELETE'" in sample
        assert "body:" not in sample

    def test_unknown_language_falls_back_to_javascript(self, petstore):
        ep = petstore.get_endpoint("listpets")
        assert generate_sample(ep, "cobol") == generate_sample(ep, "javascript")

    def test_base_url_override(self, petstore):
        sample = generate_sample(petstore.get_endpoint("listpets"), "curl", "http://localhost:8080/")
        assert '"http://localhost:8080/pets?limit=25"' in sample

    def test_default_base_url_without_servers(self):
        ep = Endpoint(
            id="get-things",
            path="/things",
            method="GET",
            parameters=(Parameter(name="active", location="query", param_schema=PrimitiveSchema(type="boolean")),),
        )
        assert f'"{DEFAULT_BASE_URL}/things?active=true"' in generate_sample(ep, "curl")

    def test_deterministic(self, petstore):
        for ep in petstore.endpoints:
            assert generate_sample(ep, "python") == generate_sample(ep, "python")


BOOKING_YAML = """
openapi: 3.0.0
paths:
  /bookings:
    post:
      summary: Create a booking
      requestBody:
        content:
          application/json:
            schema:
              type: object
              properties:
                day:
                  type: string
                  format: date
                  example: 2024-01-01
"""


class TestYamlScalars:
    def test_dates_render_in_every_language(self):
        ep = normalize(load_document(BOOKING_YAML)).endpoints[0]
        assert '"day": "2024-01-01"' in generate_sample(ep, "curl")
        assert '"day": "2024-01-01"' in generate_sample(ep, "javascript")
        assert "payload = {'day': '2024-01-01'}" in generate_sample(ep, "python")

    def test_unnormalized_date_still_renders(self):
        ep = Endpoint(
            id="post-bookings",
            path="/bookings",
            method="POST",
            request_body=RequestBody(content={
                "application/json": ObjectSchema(properties={"day": PrimitiveSchema(example=datetime.date(2024, 1, 1))}),
            }),
        )
        assert '"day": "2024-01-01"' in generate_sample(ep, "curl")
        assert '"day": "2024-01-01"' in generate_sample(ep, "javascript")

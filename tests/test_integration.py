"""End-to-end tests: load a document, browse it, search it through the agent tool."""

from pathlib import Path

from api_explorer.parser.loader import load_document, load_spec
from api_explorer.parser.openapi import normalize
from api_explorer.search.grouping import filter_view
from api_explorer.search.tool import NO_RESULTS_MESSAGE, run_tool

FIXTURES = Path(__file__).parent / "fixtures"

BOOKING_SPEC = """
openapi: 3.1.0
info:
  title: Booking API
  version: "3"
tags:
  - name: Appointments
    description: Manage appointments
  - name: Customers
paths:
  /appointments/search:
    post:
      tags: [Appointments]
      summary: Search appointments
      requestBody:
        content:
          application/json:
            schema:
              $ref: '#/components/schemas/AppointmentQuery'
      responses:
        '200':
          description: Matching appointments
  /customers:
    post:
      tags: [Customers]
      operationId: createCustomer
      summary: Create a customer
      requestBody:
        required: true
        content:
          application/json:
            schema:
              $ref: '#/components/schemas/Customer'
      responses:
        '201':
          description: Created
  /customers/{customerId}:
    get:
      tags: [Customers]
      summary: Get a customer
      parameters:
        - name: customerId
          in: path
          schema:
            type: string
      responses:
        '200':
          description: OK
components:
  schemas:
    AppointmentQuery:
      type: object
      properties:
        from:
          type: string
          format: date
        customerId:
          type: string
    Customer:
      allOf:
        - type: object
          properties:
            email:
              type: string
        - type: object
          properties:
            fullName:
              type: string
"""


class TestBookingFlow:
    def test_browse_then_search(self):
        document = normalize(load_document(BOOKING_SPEC))

        assert document.title == "Booking API"
        grouped = filter_view(document)
        assert [category.name for category, _ in grouped] == ["Appointments", "Customers"]
        assert [e.id for e in grouped[1][1]] == ["createcustomer", "get-customers-customerid"]
        assert document.get_endpoint("get-customers-customerid").parameters[0].required is True

        output = run_tool(document, "search_documentation", {"query": "create customer", "language": "python"})
        first_section = output.split("\n## ")[1]
        assert first_section.startswith("POST /customers\n")
        assert "'email': 'user@example.com'" in first_section
        assert "'fullName': 'Example Name'" in first_section

    def test_filtered_browse(self):
        document = normalize(load_document(BOOKING_SPEC))
        grouped = filter_view(document, "appointments")
        assert [category.name for category, _ in grouped] == ["Appointments"]


class TestFixtureFlow:
    def test_customer_search(self):
        document = load_spec(FIXTURES / "customers.json")
        output = run_tool(document, "search_documentation", {"query": "customer"})
        assert "## POST /customer/search" in output
        assert "fetch('https://api.example.com/customer/search?includeData=123'" in output

    def test_petstore_no_results(self):
        document = load_spec(FIXTURES / "petstore.yaml")
        assert run_tool(document, "search_documentation", {"query": "zzz-no-match"}) == NO_RESULTS_MESSAGE

    def test_petstore_survives_broken_refs(self):
        document = load_spec(FIXTURES / "petstore.yaml")
        assert len(document.endpoints) == 6
        assert document.warnings
        output = run_tool(document, "search_documentation", {"query": "inventory", "language": "curl"})
        assert "## GET /store/inventory" in output

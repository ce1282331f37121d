"""
Entity descriptors.

One ``EntitySchema`` per backend resource drives the generic list/form screens:
which fields the form has, how they are validated, which fields free-text search
looks at, which sort keys and facets exist, and how form values become the JSON
body the backend expects (nested ``{"id": ...}`` references, generated numbers,
derived fields).
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from . import validation as v
from .calculations import generate_number, profit_percentage, to_number, round2
from .listing import Facet, SortKey, get_path


@dataclass(frozen=True)
class Field:
    name: str
    label: str
    kind: str = "text"   # text, textarea, number, integer, date, email, password, bool, select
    ref: Optional[str] = None        # nested reference key in the payload, sent as {"id": value}
    lookup: Optional[str] = None     # reference list that feeds a select
    choices: Sequence[Tuple[str, str]] = ()
    create_only: bool = False
    readonly: bool = False

    @property
    def source(self) -> str:
        return f"{self.ref}.id" if self.ref else self.name


@dataclass
class EntitySchema:
    key: str
    singular: str
    plural: str
    resource: str
    fields: List[Field]
    rules: List[v.Rule]
    searchable: Tuple[str, ...]
    sort_keys: Dict[str, SortKey]
    default_sort: Optional[str]
    columns: List[Tuple[str, str]]
    facets: Dict[str, Facet] = field(default_factory=dict)
    number_field: Optional[str] = None
    number_prefix: Optional[str] = None
    search_param: str = "name"
    derive: Optional[Callable[[Dict[str, Any], Mapping[str, Any]], None]] = None

    def get_field(self, name: str) -> Field:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def form_fields(self, editing: bool) -> List[Field]:
        return [f for f in self.fields if not (editing and f.create_only)]

    def reference_rules(self, editing: bool = False) -> List[v.Rule]:
        return [
            v.reference_id(f.name, f"Please select a valid {f.label.lower()}")
            for f in self.form_fields(editing) if f.ref
        ]

    def validate(self, values: Mapping[str, Any], editing: bool = False) -> List[str]:
        context = dict(values)
        context["_editing"] = editing
        return v.validate(context, self.rules + self.reference_rules(editing))

    def new_number(self) -> Optional[str]:
        if not self.number_field or not self.number_prefix:
            return None
        return generate_number(self.number_prefix)

    def form_defaults(self, subject: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Initial form values: a fresh number for create, the flattened record for edit."""
        if subject is None:
            defaults: Dict[str, Any] = {}
            if self.number_field:
                defaults[self.number_field] = self.new_number()
            for f in self.fields:
                if f.kind == "bool":
                    defaults[f.name] = True
            return defaults
        values = {}
        for f in self.fields:
            if f.create_only:
                continue
            value = get_path(subject, f.source)
            if f.kind == "date" and isinstance(value, str):
                value = value[:10]
            elif f.ref and value is not None:
                value = str(value)
            values[f.name] = value
        if self.number_field:
            values[self.number_field] = subject.get(self.number_field)
        return values

    def to_payload(self, values: Mapping[str, Any], subject: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        editing = subject is not None
        payload: Dict[str, Any] = {}
        for f in self.form_fields(editing):
            raw = values.get(f.name)
            if f.kind == "password" and not raw:
                continue
            if f.ref:
                payload[f.ref] = {"id": int(raw)} if raw not in (None, "") else None
                continue
            payload[f.name] = _coerce(f.kind, raw)
        if self.number_field:
            number = values.get(self.number_field) or (subject or {}).get(self.number_field)
            payload[self.number_field] = number or self.new_number()
        if self.derive:
            self.derive(payload, values)
        return payload

    def recalculate(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Form values with the read-only derived fields refreshed."""
        result = dict(values)
        if not self.derive:
            return result
        preview = {f.name: _coerce(f.kind, values.get(f.name)) for f in self.fields if not f.ref}
        self.derive(preview, values)
        for f in self.fields:
            if f.readonly:
                result[f.name] = preview.get(f.name)
        return result


def _coerce(kind: str, raw: Any) -> Any:
    if kind == "number":
        return to_number(raw, None)
    if kind == "integer":
        number = to_number(raw, None)
        return int(number) if number is not None else None
    if kind == "bool":
        if isinstance(raw, str):
            return raw.strip().lower() in ("1", "true", "yes", "on", "y")
        return bool(raw)
    if isinstance(raw, str):
        return raw.strip()
    return raw


def _creating(values: Mapping[str, Any]) -> bool:
    return not values.get("_editing")


def _full_name(payload: Dict[str, Any], values: Mapping[str, Any]) -> None:
    payload["fullName"] = " ".join(
        part for part in (payload.get("firstName"), payload.get("lastName")) if part
    )


def _product_derive(payload: Dict[str, Any], values: Mapping[str, Any]) -> None:
    payload["profitPercentage"] = profit_percentage(payload.get("costPrice"), payload.get("sellingPrice"))


def _order_derive(payload: Dict[str, Any], values: Mapping[str, Any]) -> None:
    unit_price = to_number(payload.get("unitPrice"))
    quantity = to_number(payload.get("quantity"))
    payload["totalPrice"] = round2(unit_price * quantity)


def _dates_in_order(first: str, second: str, message: str) -> v.Rule:
    def rule(values):
        start, end = values.get(first), values.get(second)
        if start and end and str(end)[:10] < str(start)[:10]:
            return message
        return None
    return rule


ROLE_CHOICES = [
    ("CEO", "CEO"),
    ("PRODUCT_MANAGER", "Product Manager"),
    ("MERCHANDISE_MANAGER", "Merchandise Manager"),
    ("DISPATCH_OFFICER", "Dispatch Officer"),
]
SEX_CHOICES = [("Male", "Male"), ("Female", "Female")]
CIVIL_STATUS_CHOICES = [(s, s) for s in ("Single", "Married", "Divorced", "Widowed")]
ACTIVE_CHOICES = [("true", "Active"), ("false", "Inactive")]

# reference list name -> (endpoint, label field)
LOOKUPS: Dict[str, Tuple[str, str]] = {
    "categories": ("/categories", "name"),
    "suppliers": ("/suppliers", "supplierName"),
    "statuses": ("/statuses", "value"),
    "provinces": ("/provinces", "value"),
    "order-statuses": ("/order-statuses", "value"),
    "delivery-status": ("/delivery-status", "value"),
    "delivery-providers": ("/delivery-providers", "name"),
    "customers": ("/customer", "fullName"),
    "orders": ("/orders", "orderNo"),
    "payment-methods": ("/payment-methods", "value"),
    "products": ("/products", "name"),
}


PRODUCTS = EntitySchema(
    key="products",
    singular="product",
    plural="products",
    resource="/products",
    number_field="productNo",
    number_prefix="PRD",
    fields=[
        Field("name", "Name"),
        Field("description", "Description", "textarea"),
        Field("productImage", "Image URL"),
        Field("costPrice", "Cost price", "number"),
        Field("sellingPrice", "Selling price", "number"),
        Field("profitPercentage", "Profit %", "number", readonly=True),
        Field("quantityInStock", "Quantity in stock", "integer"),
        Field("categoryId", "Category", "select", ref="productCategory", lookup="categories"),
        Field("supplierId", "Supplier", "select", ref="supplierDetails", lookup="suppliers"),
        Field("isActive", "Active", "bool"),
    ],
    rules=[
        v.required("name", "Product name is required"),
        v.required("description", "Description is required"),
        v.positive("costPrice", "Valid cost price is required"),
        v.positive("sellingPrice", "Valid selling price is required"),
        v.greater_than("sellingPrice", "costPrice", "Selling price must be greater than cost price"),
        v.non_negative_int("quantityInStock", "Valid quantity is required"),
        v.required("categoryId", "Category is required"),
        v.required("supplierId", "Supplier is required"),
    ],
    searchable=("name", "description", "productNo"),
    sort_keys={
        "name": SortKey("name"),
        "price": SortKey("sellingPrice", "number"),
        "stock": SortKey("quantityInStock", "number"),
        "category": SortKey("productCategory.name"),
    },
    default_sort="name",
    facets={"category": Facet("productCategory.id", "Category", lookup="categories")},
    columns=[
        ("No.", "productNo"),
        ("Name", "name"),
        ("Category", "productCategory.name"),
        ("Cost", "costPrice"),
        ("Price", "sellingPrice"),
        ("Stock", "quantityInStock"),
        ("Profit %", "profitPercentage"),
    ],
    derive=_product_derive,
)

CATEGORIES = EntitySchema(
    key="categories",
    singular="category",
    plural="categories",
    resource="/categories",
    number_field="categoryNo",
    number_prefix="CAT",
    fields=[
        Field("name", "Name"),
        Field("description", "Description", "textarea"),
    ],
    rules=[
        v.required("name", "Category name is required"),
        v.min_length("name", 2, "Category name must be at least 2 characters"),
    ],
    searchable=("name", "description", "categoryNo"),
    sort_keys={"name": SortKey("name"), "number": SortKey("categoryNo")},
    default_sort="name",
    columns=[("No.", "categoryNo"), ("Name", "name"), ("Description", "description")],
)

EMPLOYEES = EntitySchema(
    key="employees",
    singular="employee",
    plural="employees",
    resource="/employees",
    number_field="employeeNo",
    number_prefix="EMP",
    search_param="searchTerm",
    fields=[
        Field("firstName", "First name"),
        Field("lastName", "Last name"),
        Field("dateOfBirth", "Date of birth", "date"),
        Field("sex", "Gender", "select", choices=SEX_CHOICES),
        Field("civilStatus", "Civil status", "select", choices=CIVIL_STATUS_CHOICES),
        Field("address", "Address", "textarea"),
        Field("mobileNumber", "Mobile number"),
        Field("telephoneNumber", "Telephone number"),
        Field("nicNo", "NIC number"),
        Field("username", "Username"),
        Field("password", "Password", "password", create_only=True),
        Field("role", "Role", "select", choices=ROLE_CHOICES),
        Field("statusId", "Status", "select", ref="status", lookup="statuses"),
    ],
    rules=[
        v.required("firstName", "First name is required"),
        v.required("lastName", "Last name is required"),
        v.required("dateOfBirth", "Date of birth is required"),
        v.required("sex", "Gender is required"),
        v.required("civilStatus", "Civil status is required"),
        v.required("address", "Address is required"),
        v.matches("mobileNumber", v.is_mobile, "Valid 10-digit mobile number is required"),
        v.matches("telephoneNumber", v.is_mobile, "Telephone number must be 10 digits", optional=True),
        v.matches("nicNo", v.is_nic, "Valid NIC number is required"),
        v.required("username", "Username is required"),
        v.when(_creating, v.min_length("password", 6, "Password must be at least 6 characters")),
        v.required("role", "Role is required"),
        v.required("statusId", "Status is required"),
    ],
    searchable=("fullName", "employeeNo", "nicNo", "mobileNumber"),
    sort_keys={
        "name": SortKey("fullName"),
        "number": SortKey("employeeNo"),
        "role": SortKey("role"),
    },
    default_sort="name",
    facets={
        "role": Facet("role", "Role", choices=ROLE_CHOICES),
        "status": Facet("status.id", "Status", lookup="statuses"),
    },
    columns=[
        ("No.", "employeeNo"),
        ("Name", "fullName"),
        ("Role", "role"),
        ("Mobile", "mobileNumber"),
        ("NIC", "nicNo"),
        ("Status", "status.value"),
    ],
    derive=_full_name,
)

CUSTOMER_RULES: List[v.Rule] = [
    v.required("firstName", "First name is required"),
    v.required("lastName", "Last name is required"),
    v.required("dateOfBirth", "Date of birth is required"),
    v.matches("email", v.is_email, "Please enter a valid email address"),
    v.matches("mobileNumber", v.is_mobile, "Mobile number must be exactly 10 digits"),
    v.matches("nicNo", v.is_nic, "Please enter a valid NIC number"),
    v.required("address", "Address is required"),
    v.matches("zipCode", v.is_zip_code, "Zip code must be exactly 5 digits"),
    v.required("provinceId", "Province is required"),
]

CUSTOMERS = EntitySchema(
    key="customers",
    singular="customer",
    plural="customers",
    resource="/customer",
    search_param="searchTerm",
    fields=[
        Field("firstName", "First name"),
        Field("lastName", "Last name"),
        Field("dateOfBirth", "Date of birth", "date"),
        Field("email", "Email", "email"),
        Field("nicNo", "NIC number"),
        Field("mobileNumber", "Mobile number"),
        Field("address", "Address", "textarea"),
        Field("country", "Country"),
        Field("zipCode", "Zip code"),
        Field("provinceId", "Province", "select", ref="province", lookup="provinces"),
        Field("statusId", "Status", "select", ref="status", lookup="statuses"),
    ],
    rules=CUSTOMER_RULES,
    searchable=("fullName", "email", "mobileNumber", "nicNo"),
    sort_keys={
        "name": SortKey("fullName"),
        "email": SortKey("email"),
        "registered": SortKey("createdTimestamp"),
    },
    default_sort="name",
    facets={
        "status": Facet("status.value", "Status", choices=[("Active", "Active"), ("Inactive", "Inactive")]),
        "province": Facet("province.id", "Province", lookup="provinces"),
    },
    columns=[
        ("Name", "fullName"),
        ("Email", "email"),
        ("Mobile", "mobileNumber"),
        ("Province", "province.value"),
        ("Status", "status.value"),
    ],
    derive=_full_name,
)

ORDERS = EntitySchema(
    key="orders",
    singular="order",
    plural="orders",
    resource="/orders",
    number_field="orderNo",
    number_prefix="ORD",
    search_param="orderNo",
    fields=[
        Field("customerId", "Customer", "select", ref="customer", lookup="customers"),
        Field("quantity", "Quantity", "integer"),
        Field("unitPrice", "Unit price", "number"),
        Field("totalPrice", "Total price", "number", readonly=True),
        Field("shippingAddress", "Shipping address", "textarea"),
        Field("orderDate", "Order date", "date"),
        Field("orderStatusId", "Status", "select", ref="orderStatus", lookup="order-statuses"),
    ],
    rules=[
        v.required("customerId", "Customer is required"),
        v.positive("quantity", "Valid quantity is required"),
        v.positive("unitPrice", "Valid unit price is required"),
        v.required("shippingAddress", "Shipping address is required"),
        v.required("orderDate", "Order date is required"),
        v.required("orderStatusId", "Order status is required"),
    ],
    searchable=("orderNo", "customer.fullName", "customer.email"),
    sort_keys={
        "date": SortKey("orderDate"),
        "total": SortKey("totalPrice", "number"),
        "number": SortKey("orderNo"),
    },
    default_sort="date",
    facets={
        "status": Facet("orderStatus.id", "Status", lookup="order-statuses"),
        "date": Facet("orderDate", "Order date", kind="date"),
    },
    columns=[
        ("Order No.", "orderNo"),
        ("Customer", "customer.fullName"),
        ("Qty", "quantity"),
        ("Total", "totalPrice"),
        ("Date", "orderDate"),
        ("Status", "orderStatus.value"),
    ],
    derive=_order_derive,
)

SUPPLIERS = EntitySchema(
    key="suppliers",
    singular="supplier",
    plural="suppliers",
    resource="/suppliers",
    number_field="supplierNo",
    number_prefix="SUP",
    fields=[
        Field("supplierName", "Supplier name"),
        Field("country", "Country"),
        Field("address", "Address", "textarea"),
        Field("contactNo", "Contact number"),
        Field("email", "Email", "email"),
        Field("isActive", "Active", "bool"),
    ],
    rules=[
        v.required("supplierName", "Supplier name is required"),
        v.required("country", "Country is required"),
        v.required("address", "Address is required"),
        v.required("contactNo", "Contact number is required"),
        v.matches("contactNo", v.is_mobile, "Contact number must be exactly 10 digits", optional=True),
        v.matches("email", v.is_email, "Please enter a valid email address", optional=True),
    ],
    searchable=("supplierName", "supplierNo", "country"),
    sort_keys={"name": SortKey("supplierName"), "country": SortKey("country")},
    default_sort="name",
    facets={
        "country": Facet("country", "Country"),
        "active": Facet("isActive", "Active", choices=ACTIVE_CHOICES),
    },
    columns=[
        ("No.", "supplierNo"),
        ("Name", "supplierName"),
        ("Country", "country"),
        ("Contact", "contactNo"),
        ("Active", "isActive"),
    ],
)

SUPPLIER_PAYMENTS = EntitySchema(
    key="supplier-payments",
    singular="supplier payment",
    plural="supplier payments",
    resource="/supplier-payments",
    number_field="referenceNo",
    number_prefix="PAY",
    fields=[
        Field("supplierId", "Supplier", "select", ref="supplier", lookup="suppliers"),
        Field("paymentDate", "Payment date", "date"),
        Field("amountPaid", "Amount paid", "number"),
        Field("referenceNo", "Reference number"),
        Field("notes", "Notes", "textarea"),
    ],
    rules=[
        v.required("supplierId", "Supplier is required"),
        v.required("paymentDate", "Payment date is required"),
        v.positive("amountPaid", "Valid amount is required"),
        v.required("referenceNo", "Reference number is required"),
    ],
    searchable=("referenceNo", "supplier.supplierName"),
    sort_keys={"date": SortKey("paymentDate"), "amount": SortKey("amountPaid", "number")},
    default_sort="date",
    facets={"supplier": Facet("supplier.id", "Supplier", lookup="suppliers")},
    columns=[
        ("Reference", "referenceNo"),
        ("Supplier", "supplier.supplierName"),
        ("Date", "paymentDate"),
        ("Amount", "amountPaid"),
    ],
)

DELIVERY_PROVIDERS = EntitySchema(
    key="delivery-providers",
    singular="delivery provider",
    plural="delivery providers",
    resource="/delivery-providers",
    fields=[
        Field("name", "Provider name"),
        Field("address", "Address", "textarea"),
        Field("contactNo", "Contact number"),
        Field("email", "Email", "email"),
        Field("isActive", "Active", "bool"),
    ],
    rules=[
        v.required("name", "Provider name is required"),
        v.required("address", "Address is required"),
        v.required("contactNo", "Contact number is required"),
        v.required("email", "Email is required"),
        v.matches("contactNo", v.is_mobile, "Contact number must be exactly 10 digits", optional=True),
        v.matches("email", v.is_email, "Please enter a valid email address", optional=True),
    ],
    searchable=("name", "email", "contactNo"),
    sort_keys={"name": SortKey("name")},
    default_sort="name",
    facets={"active": Facet("isActive", "Active", choices=ACTIVE_CHOICES)},
    columns=[("Name", "name"), ("Contact", "contactNo"), ("Email", "email"), ("Active", "isActive")],
)

DELIVERIES = EntitySchema(
    key="deliveries",
    singular="delivery",
    plural="deliveries",
    resource="/deliveries",
    number_field="trackingNo",
    number_prefix="TRK",
    search_param="trackingNo",
    fields=[
        Field("orderId", "Order", "select", ref="order", lookup="orders"),
        Field("serviceProviderId", "Delivery provider", "select", ref="serviceProvider", lookup="delivery-providers"),
        Field("shippedDate", "Shipped date", "date"),
        Field("expectedDeliveryDate", "Expected delivery", "date"),
        Field("deliveryStatusId", "Status", "select", ref="deliveryStatus", lookup="delivery-status"),
    ],
    rules=[
        v.required("orderId", "Order is required"),
        v.required("serviceProviderId", "Delivery provider is required"),
        v.required("shippedDate", "Shipped date is required"),
        v.required("expectedDeliveryDate", "Expected delivery date is required"),
        _dates_in_order("shippedDate", "expectedDeliveryDate",
                        "Expected delivery date cannot be before the shipped date"),
        v.required("deliveryStatusId", "Delivery status is required"),
    ],
    searchable=("trackingNo", "order.orderNo"),
    sort_keys={"shipped": SortKey("shippedDate"), "expected": SortKey("expectedDeliveryDate")},
    default_sort="shipped",
    facets={"status": Facet("deliveryStatus.id", "Status", lookup="delivery-status")},
    columns=[
        ("Tracking No.", "trackingNo"),
        ("Order", "order.orderNo"),
        ("Provider", "serviceProvider.name"),
        ("Shipped", "shippedDate"),
        ("Expected", "expectedDeliveryDate"),
        ("Status", "deliveryStatus.value"),
    ],
)


SCHEMAS: Dict[str, EntitySchema] = {
    schema.key: schema
    for schema in (
        PRODUCTS, CATEGORIES, EMPLOYEES, CUSTOMERS, ORDERS,
        SUPPLIERS, SUPPLIER_PAYMENTS, DELIVERY_PROVIDERS, DELIVERIES,
    )
}

REGISTRATION_RULES: List[v.Rule] = CUSTOMER_RULES + [
    v.required("username", "Username is required"),
    v.min_length("password", 6, "Password must be at least 6 characters"),
    v.equals("confirmPassword", "password", "Passwords do not match"),
    v.reference_id("provinceId", "Please select a valid province"),
]

# the signed-in customer's own record, edited outside the manage screens
PROFILE = EntitySchema(
    key="profile",
    singular="profile",
    plural="profile",
    resource="/customer/profile",
    fields=[
        Field("firstName", "First name"),
        Field("lastName", "Last name"),
        Field("dateOfBirth", "Date of birth", "date"),
        Field("sex", "Gender", "select", choices=SEX_CHOICES),
        Field("mobileNumber", "Mobile number"),
        Field("address", "Address", "textarea"),
        Field("country", "Country"),
        Field("zipCode", "Zip code"),
    ],
    rules=[
        v.required("firstName", "First name is required"),
        v.required("lastName", "Last name is required"),
        v.matches("mobileNumber", v.is_mobile, "Valid 10-digit mobile number is required"),
        v.required("address", "Address is required"),
        v.matches("zipCode", v.is_zip_code, "Zip code must be exactly 5 digits", optional=True),
    ],
    searchable=(),
    sort_keys={},
    default_sort=None,
    columns=[],
    derive=_full_name,
)


def get_schema(key: str) -> EntitySchema:
    return SCHEMAS[key]

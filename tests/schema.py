"""Schema fragments and AST helpers shared by the crudql tests."""

from graphql import print_ast

WIDGET_SDL = """
type Widget {
    id: ID!
    name: String!
    size: Int
    color: String
}
"""

GADGET_SDL = """
type Gadget {
    id: ID!
    label: String!
    serialNumber: String
}
"""

NESTED_SDL = """
type Order {
    id: ID!
    reference: String!
    customer: Customer!
    lines: [OrderLine!]!
    status: OrderStatus
}

type Customer {
    name: String!
    address: Address
}

type Address {
    street: String
    city: String!
}

type OrderLine {
    sku: String!
    quantity: Int!
}

enum OrderStatus {
    OPEN
    SHIPPED
}
"""


def definition(document, name):
    """Return the declaration called ``name`` (exactly one must exist)."""
    matches = [d for d in document.definitions if getattr(d, 'name', None) is not None and d.name.value == name]
    assert len(matches) == 1, f"expected one {name}, found {len(matches)}"
    return matches[0]


def has_definition(document, name):
    return any(getattr(d, 'name', None) is not None and d.name.value == name for d in document.definitions)


def field_types(node):
    """Map field name -> printed type for an object or input declaration."""
    return {f.name.value: print_ast(f.type) for f in node.fields or ()}


def field(node, name):
    return next(f for f in node.fields if f.name.value == name)


def arg_types(field_node):
    return {a.name.value: print_ast(a.type) for a in field_node.arguments or ()}

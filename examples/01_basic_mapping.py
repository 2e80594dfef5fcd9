"""
Example 01: Basic Mapping

This example demonstrates mapping raw dicts and JSON onto dataclasses and Pydantic models,
and flattening them back.
"""

from data_mapper import Mapper, MapperOptions, MapProperty, ValidationError
from dataclasses import dataclass
from enum import Enum
from pydantic import BaseModel
from typing import Annotated, Optional


class Status(Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


@dataclass
class Address:
    """Nested object"""
    street: str
    city: str


@dataclass
class User:
    """User model using dataclass"""
    id: int
    name: Annotated[str, MapProperty(name="full_name")]
    status: Status
    address: Address
    score: float = 0.0
    nickname: Optional[str] = None


class Product(BaseModel):
    """Product model using Pydantic"""
    sku: str
    price: float
    tags: list[str] = []


def main():
    mapper = Mapper()

    # 1. Construct from a dict (string numbers are coerced)
    print("1. from_array with a dataclass:")
    user = mapper.from_array(
        {
            "id": "1",
            "full_name": "Alice",
            "status": "active",
            "address": {"street": "Main St 1", "city": "Berlin"},
            "score": "9.5",
        },
        User,
    )
    print(f"   {user}")
    print()

    # 2. Construct from JSON into a Pydantic model
    print("2. from_json with a Pydantic model:")
    product = mapper.from_json('{"sku": "A-100", "price": 10, "tags": ["new"]}', Product)
    print(f"   {product!r}")
    print()

    # 3. Flatten back
    print("3. to_array / to_json:")
    print(f"   {mapper.to_array(user)}")
    print(f"   {mapper.to_json(product)}")
    print()

    # 4. Errors are collected and reported together
    print("4. Validation errors:")
    try:
        mapper.from_array(
            {"id": "x", "status": "archived", "address": {"street": "s"}},
            User,
        )
    except ValidationError as e:
        for path, message in e.errors.items():
            print(f"   {path}: {message}")
    print()

    # 5. Strict mode rejects unknown keys
    print("5. Strict mode:")
    strict = Mapper(MapperOptions.with_strict_mode())
    try:
        strict.from_array({"sku": "A", "price": 1, "colour": "red"}, Product)
    except ValidationError as e:
        print(f"   {e}")
        print(f"   {e.to_api_response()}")


if __name__ == "__main__":
    main()

"""
Example 02: Filters and Hydration

This example demonstrates output filter chains and computed fields bound with HydrateWith.
"""

from data_mapper import (
    ArrayCast,
    Each,
    HydrateWith,
    HydrationMode,
    LimitArray,
    Mapper,
    MapperOptions,
    SortArray,
    StringTrim,
    UniqueArray,
)
from dataclasses import dataclass, field
from typing import Annotated, Any


def locale_from_request(root: dict[str, Any]) -> str:
    return root.get("locale", "en")


@dataclass
class Author:
    first: str
    last: str
    display: Annotated[str, HydrateWith("join_names", HydrationMode.PARENT)] = ""
    locale: Annotated[str, HydrateWith(locale_from_request, HydrationMode.FULL)] = ""

    @staticmethod
    def join_names(parent: dict[str, Any]) -> str:
        return f"{parent['first']} {parent['last']}"


@dataclass
class Article:
    title: Annotated[str, StringTrim()]
    author: Author
    tags: Annotated[list[str], Each(StringTrim), UniqueArray, SortArray] = field(default_factory=list)
    ratings: Annotated[list, ArrayCast("int", recursive=True), LimitArray(3)] = field(default_factory=list)


def main():
    mapper = Mapper(MapperOptions(skip_null_values=True))

    payload = {
        "locale": "de",
        "title": "  Mapping data  ",
        "author": {"first": "Ada", "last": "Lovelace"},
        "tags": [" python", "data ", "python", " mapping "],
        "ratings": ["5", "4", ["3", "2"], "1"],
    }

    # Hydration runs while constructing
    print("1. Hydrated fields:")
    article = mapper.from_array(payload, Article)
    print(f"   display={article.author.display!r} locale={article.author.locale!r}")
    print(f"   title before filters: {article.title!r}")
    print()

    # Filters run while flattening
    print("2. Filtered output:")
    for key, value in mapper.to_array(article).items():
        print(f"   {key}: {value}")


if __name__ == "__main__":
    main()

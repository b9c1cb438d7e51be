"""
Usage rendering tests (plain text and rich).

Scope
- Synopsis tokens for required/optional named and positional targets.
- Padded description table, long labels, missing descriptions.
- Empty schemas and repeatable output.
- Rich rendering through a captured console.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from bindery import Argument, DefaultArgument, Schema


class Service:
    instance = Argument("instance", descr="instance name")
    verbose: bool = Argument("verbose", required=True, descr="chatty output")
    Name = DefaultArgument(required=True, descr="service name")
    extra = Argument()


class Empty:
    pass


class Wide:
    averyveryverylongkeyname = Argument("averyveryverylongkeyname", descr="wide")


def render(renderable):
    console = Console(file=io.StringIO(), width=100, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestPlainUsage(TestCase):
    """Schema.usage formatting."""

    def testSynopsisAndTable(self):
        expected = (
            "[-instance] -verbose <Name> [<extra>]\n"
            "\n"
            "instance            instance name\n"
            "verbose             chatty output\n"
            "<Name>              service name\n"
            "<extra>             \n"
        )
        self.assertEqual(Schema(Service).usage, expected)

    def testEmptySchemaDoesNotFail(self):
        self.assertEqual(Schema(Empty).usage, "\n\n")

    def testRenderingIsRepeatable(self):
        schema = Schema(Service)
        self.assertEqual(schema.usage, schema.usage)

    def testLongLabelsAreNotTruncated(self):
        rows = Schema(Wide).usage.split("\n\n", 1)[1]
        self.assertEqual(rows, "averyveryverylongkeynamewide\n")

    def testLabelColumnIsTwentyWide(self):
        for row in Schema(Service).usage.split("\n\n", 1)[1].splitlines():
            self.assertEqual(row[20 - 1], " ")
            self.assertNotEqual(row[:20].strip(), "")


class TestRichUsage(TestCase):
    """Schema.__rich__ rendering."""

    def testContainsSynopsisAndDescriptions(self):
        output = render(Schema(Service))
        self.assertIn("usage:", output)
        self.assertIn("[-instance] -verbose <Name> [<extra>]", output)
        self.assertIn("service name", output)
        self.assertIn("chatty output", output)

    def testEmptySchemaRenders(self):
        self.assertIn("usage:", render(Schema(Empty)))


if __name__ == "__main__":
    unittest.main()

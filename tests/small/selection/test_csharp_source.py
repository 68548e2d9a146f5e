"""Tests for C# test class detection.

Covers the three common frameworks (xUnit, NUnit, MSTest) and the lexical
traps a brace scanner has to survive: comments, strings and nested types.
"""

import textwrap

import pytest

from change_gate.selection.csharp_source import CSharpTestClassDetector, blank_literals
from change_gate.selection.models import MethodSpan


def detect(source):
    return CSharpTestClassDetector().detect(textwrap.dedent(source))


@pytest.mark.small
class TestBlankLiterals:
    """Tests for blank_literals."""

    def test_preserves_length_and_newlines(self):
        """Blanking keeps offsets and line numbers stable."""
        source = 'var s = "a{b";\n// }\nvar c = \'}\';\n'

        result = blank_literals(source)

        assert len(result) == len(source)
        assert result.count('\n') == source.count('\n')
        assert '{' not in result
        assert '}' not in result

    def test_block_comments_spanning_lines(self):
        """Block comments are blanked across lines."""
        result = blank_literals('a /* {\n } */ b')

        assert result == 'a     \n      b'

    def test_verbatim_string_with_doubled_quotes(self):
        """A doubled quote does not end a verbatim string."""
        result = blank_literals('x = @"say ""{hi}""";')

        assert '{' not in result
        assert result.endswith(';')

    def test_escaped_quote_in_regular_string(self):
        """An escaped quote does not end a regular string."""
        result = blank_literals('x = "a\\"{";')

        assert '{' not in result
        assert result.endswith(';')


@pytest.mark.small
class TestCSharpTestClassDetector:
    """Tests for CSharpTestClassDetector."""

    def test_supports_cs_files(self):
        """Only .cs files are handled."""
        detector = CSharpTestClassDetector()

        assert detector.supports('tests/FooTests/BarTests.cs')
        assert not detector.supports('tests/FooTests/bar_test.py')

    def test_xunit_class_and_methods(self):
        """xUnit classes are found by their [Fact]/[Theory] methods."""
        classes = detect(
            '''\
            using Xunit;

            namespace Contoso.Tests
            {
                public class Calculator
                {
                    [Fact]
                    public void Adds()
                    {
                        Assert.Equal(2, 1 + 1);
                    }

                    [Theory]
                    [InlineData(1)]
                    public void Accepts(int value) => Assert.True(value > 0);

                    private int Helper() { return 1; }
                }
            }
            '''
        )

        assert len(classes) == 1
        calculator = classes[0]
        assert (calculator.name, calculator.start, calculator.end) == ('Calculator', 5, 18)
        assert calculator.methods == (MethodSpan('Adds', 7, 11), MethodSpan('Accepts', 13, 15))

    def test_nunit_fixture_attribute(self):
        """[TestFixture] marks a class even without test methods."""
        classes = detect(
            '''\
            [TestFixture]
            public class Setup
            {
            }
            '''
        )

        assert [(c.name, c.start, c.end) for c in classes] == [('Setup', 1, 4)]

    def test_mstest_qualified_attributes(self):
        """Attribute names may be qualified or carry the Attribute suffix."""
        classes = detect(
            '''\
            [Microsoft.VisualStudio.TestTools.UnitTesting.TestClassAttribute]
            public sealed class Orders
            {
                [TestMethod, Timeout(100)]
                public async Task Ships() { await Task.Delay(1); }
            }
            '''
        )

        assert classes[0].name == 'Orders'
        assert classes[0].methods == (MethodSpan('Ships', 4, 5),)

    def test_class_named_tests_without_attributes(self):
        """A *Tests class counts even before it has methods."""
        classes = detect('public class BarTests\n{\n}\n')

        assert [c.name for c in classes] == ['BarTests']

    def test_ignores_production_classes(self):
        """Plain classes are not test classes."""
        classes = detect('public class Order\n{\n    public void Ship() { }\n}\n')

        assert classes == []

    def test_braces_in_strings_and_comments(self):
        """Literal braces do not break class boundaries."""
        classes = detect(
            '''\
            public class ParserTests
            {
                // closing brace } in a comment
                [Fact]
                public void Parses()
                {
                    var json = "{ \\"a\\": 1 }";
                }
            }

            public class Other
            {
            }
            '''
        )

        assert [(c.name, c.start, c.end) for c in classes] == [('ParserTests', 1, 9)]

    def test_multiple_classes_in_source_order(self):
        """Every test class in a file is reported, in order."""
        classes = detect(
            '''\
            public class FirstTests
            {
                [Fact] public void A() { }
            }

            public class SecondTests
            {
                [Fact] public void B() { }
            }
            '''
        )

        assert [(c.name, c.start, c.end) for c in classes] == [('FirstTests', 1, 4), ('SecondTests', 6, 9)]

    def test_generic_constraint_is_not_a_class(self):
        """'where T : class' does not start a class declaration."""
        classes = detect(
            '''\
            public class RepositoryTests<T> where T : class
            {
                [Fact] public void Saves() { }
            }
            '''
        )

        assert [c.name for c in classes] == ['RepositoryTests']

    def test_unbalanced_source_yields_nothing(self):
        """A truncated file cannot be scanned."""
        assert detect('public class BarTests\n{\n    [Fact] public void A() {\n') == []

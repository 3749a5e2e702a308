"""
    Run tests for the header literal parser

    This file is part of npyz.

    npyz is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License, or
    (at your option) any later version.

    npyz is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with npyz.  If not, see <https://www.gnu.org/licenses/>.
"""
import unittest

from npyz import MalformedHeader
from npyz._hl.literal import format_literal, parse_literal


class TestParseLiteral(unittest.TestCase):
    def test_numpy_header(self):
        value = parse_literal("{'descr': '<f8', 'fortran_order': False, 'shape': (3, 4), }")
        self.assertEqual(value, {'descr': '<f8', 'fortran_order': False, 'shape': (3, 4)})

    def test_tuples(self):
        self.assertEqual(parse_literal('()'), ())
        self.assertEqual(parse_literal('(3,)'), (3,))
        self.assertEqual(parse_literal('(3, 4,)'), (3, 4))
        self.assertEqual(parse_literal('(3)'), 3)
        self.assertEqual(parse_literal('((1, 2), (3,))'), ((1, 2), (3,)))

    def test_scalars(self):
        self.assertEqual(parse_literal('True'), True)
        self.assertEqual(parse_literal('False'), False)
        self.assertIsNone(parse_literal('None'))
        self.assertEqual(parse_literal('-12'), -12)
        self.assertEqual(parse_literal('12L'), 12)
        self.assertEqual(parse_literal('  7 '), 7)

    def test_strings(self):
        self.assertEqual(parse_literal('"<f8"'), '<f8')
        self.assertEqual(parse_literal(r"'it\'s'"), "it's")
        self.assertEqual(parse_literal(r"'\x41é\\'"), 'Aé\\')
        self.assertEqual(parse_literal("'été'"), 'été')

    def test_lists(self):
        self.assertEqual(parse_literal("[('a', '<f8'), ('b', '<i4')]"), [('a', '<f8'), ('b', '<i4')])
        self.assertEqual(parse_literal('[]'), [])

    def test_malformed(self):
        for text in ('', '{', "{'a': 1", "{'a' 1}", "'abc", '(1 2)', '1 + 2', "__import__('os')", 'true',
                     "{'a': 1} x", r"'\q'", r"'\x4'", '-', "{[1]: 2}", "'a\nb'",
                     '(' * 100 + ')' * 100, '1' * 5_000, r"'\UFFFFFFFF'", "{([1],): 2}"):
            with self.assertRaises(MalformedHeader, msg=text[:40]):
                parse_literal(text)

    def test_hostile_input(self):
        for text in ('(' * 5_000 + ')' * 5_000, '[' * 40 + ']' * 40, '1' * 5_000, '-' + '9' * 65,
                     r"'\UFFFFFFFF'", r"'\U00110000'", "{([1],): 2}", "{(1, {'a': 1}): 2}"):
            with self.assertRaises(MalformedHeader, msg=text[:40]):
                parse_literal(text)

    def test_nesting_and_digits_limits(self):
        self.assertEqual(parse_literal('(' * 32 + ')' * 32), ())
        self.assertEqual(parse_literal('9' * 64), int('9' * 64))
        self.assertEqual(parse_literal(r"'\U0010FFFF'"), '\U0010ffff')
        self.assertEqual(parse_literal('{(1, (2,)): 3}'), {(1, (2,)): 3})


class TestFormatLiteral(unittest.TestCase):
    def test_tuples_have_trailing_comma(self):
        self.assertEqual(format_literal(()), '()')
        self.assertEqual(format_literal((3,)), '(3,)')
        self.assertEqual(format_literal((3, 4)), '(3, 4,)')

    def test_header_dictionary(self):
        text = format_literal({'descr': '<f8', 'fortran_order': True, 'shape': (2, 3)})
        self.assertEqual(text, "{'descr': '<f8', 'fortran_order': True, 'shape': (2, 3,)}")

    def test_parse_formatted(self):
        for value in ({'descr': [('x', '<f8')], 'shape': (0,)}, "quo'te\"s", (1, (2,), ()), None, -5):
            self.assertEqual(parse_literal(format_literal(value)), value)

    def test_unsupported_value(self):
        with self.assertRaises(TypeError):
            format_literal(1.5)


if __name__ == '__main__':
    unittest.main()

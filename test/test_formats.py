"""Tests for the format registry and built-in format checkers."""

import os
import sys
import unittest

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from jsonsvalidator.formats import BUILTIN_FORMATS, FormatRegistry


class TestBuiltinFormats(unittest.TestCase):
    """Each built-in accepts good values, rejects bad ones and ignores non-strings."""

    def check(self, name, good, bad):
        checker = BUILTIN_FORMATS[name]
        for value in good:
            self.assertIsNone(checker(value, {}), f"{name}: {value!r} should pass")
        for value in bad:
            self.assertIsInstance(checker(value, {}), str, f"{name}: {value!r} should fail")
        for value in [None, 42, 4.2, True, [], {}]:
            self.assertIsNone(checker(value, {}))

    def test_date_time(self):
        """Test the date-time format."""
        self.check('date-time',
                   ['1963-06-19T08:30:06.283185Z', '2024-02-29T23:59:60+01:00', '2020-01-01t00:00:00z'],
                   ['1963-06-19', '2023-02-29T00:00:00Z', '2020-01-01T24:00:00Z', '2020-13-01T00:00:00Z',
                    '2020-01-01T00:00:00+25:00', '2020-01-01T00:00:00'])

    def test_email(self):
        """Test the email format."""
        self.check('email', ['joe.bloggs@example.com', 'a@b'], ['2962', 'no at.example.com', 'a@b@c'])

    def test_hostname(self):
        """Test the hostname format."""
        self.check('hostname', ['www.example.com', 'localhost', 'xn--4gbwdl.xn--wgbh1c'],
                   ['-a-host-name-that-starts-with--', 'not_a_valid_host_name', 'a' * 64 + '.com', '', 'a..b'])

    def test_ipv4(self):
        """Test the ipv4 format."""
        self.check('ipv4', ['192.168.0.1', '0.0.0.0'], ['256.256.256.256', '127.0.0.0.1', '127.0'])

    def test_ipv6(self):
        """Test the ipv6 format."""
        self.check('ipv6', ['::1', 'fe80::1ff:fe23:4567:890a'], ['12345::', '::laptop', '1:2:3:4:5:6:7:8:9'])

    def test_uri(self):
        """Test the uri format."""
        self.check('uri', ['http://foo.bar/?baz=qux#quux', 'urn:isbn:0451450523', 'mailto:a@b'],
                   ['//foo.bar/?baz=qux#quux', 'relative/path', 'http://exa mple.com', ''])

    def test_regex(self):
        """Test the regex format."""
        self.check('regex', ['^a+$', '([abc])+\\s+$'], ['^(abc]', '*'])


class TestFormatRegistry(unittest.TestCase):
    """Test format registration."""

    def test_builtins_present(self):
        """Test that the built-in formats are registered."""
        registry = FormatRegistry()
        for name in ['date-time', 'email', 'hostname', 'ipv4', 'ipv6', 'uri', 'regex']:
            self.assertIn(name, registry)
        self.assertEqual(registry.names(), sorted(BUILTIN_FORMATS))

    def test_without_builtins(self):
        """Test a registry without built-ins."""
        registry = FormatRegistry(include_builtins=False)
        self.assertEqual(registry.names(), [])
        self.assertIsNone(registry.get('uri'))

    def test_add_and_override(self):
        """Test adding and overriding a format."""
        registry = FormatRegistry()
        registry.add_format('uri', lambda instance, schema: None)
        self.assertIsNone(registry.get('uri')('not a uri', {}))
        registry.add_format('even', lambda instance, schema: None if instance % 2 == 0 else 'odd')
        self.assertEqual(registry.get('even')(3, {}), 'odd')

    def test_registries_are_independent(self):
        """Test that registries do not share formats."""
        first = FormatRegistry()
        second = FormatRegistry()
        first.add_format('uri', lambda instance, schema: None)
        self.assertIsNotNone(second.get('uri')('not a uri', {}))

    def test_checker_must_be_callable(self):
        """Test that a checker must be callable."""
        with self.assertRaises(TypeError):
            FormatRegistry().add_format('bad', 'not callable')


if __name__ == '__main__':
    unittest.main()

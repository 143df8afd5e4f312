#!/usr/bin/env python3
"""
Tests for the forkshell command parser.

This module covers the grammar's shape (associativity, nesting of
background and redirection nodes), the word spans carried by the tree,
and every class of parse error.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest

from forkshell.command_parser import (
    CommandParser, Exec, Redirect, Pipe, CommandList, Background, Block,
    RedirectMode, Word, iter_words, parse
)
from forkshell.errors import (
    ParseError, ShellError, ShellSyntaxError, TrailingInput,
    UnbalancedParentheses, MissingRedirectTarget, TooManyArguments
)


class TestSimpleCommands(unittest.TestCase):
    """Test parsing of simple commands."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = CommandParser()

    def test_parse_simple_command(self):
        """Test parsing a simple command."""
        cmd = self.parser.parse("ls")
        self.assertIsInstance(cmd, Exec)
        self.assertEqual(cmd.args, ["ls"])

    def test_parse_command_with_args(self):
        """Test parsing command with arguments."""
        cmd = self.parser.parse("echo hello world")
        self.assertEqual(cmd.args, ["echo", "hello", "world"])

    def test_word_spans_point_into_line(self):
        """Test that each argument equals the substring its span covers."""
        line = "  grep   -n  pattern\tfile.txt "
        cmd = self.parser.parse(line)
        for word in cmd.argv:
            self.assertEqual(line[word.start:word.end], word.text)
        self.assertEqual(cmd.args, ["grep", "-n", "pattern", "file.txt"])

    def test_empty_line_is_empty_exec(self):
        """Test that a blank line parses to an Exec with no arguments."""
        self.assertEqual(self.parser.parse(""), Exec(()))
        self.assertEqual(self.parser.parse("   "), Exec(()))

    def test_max_args_accepted(self):
        """Test that exactly max_args words are allowed."""
        cmd = self.parser.parse(" ".join(["w"] * 10))
        self.assertEqual(len(cmd.argv), 10)

    def test_too_many_args(self):
        """Test that one word beyond the bound is rejected."""
        with self.assertRaises(TooManyArguments):
            self.parser.parse(" ".join(["w"] * 11))

    def test_custom_max_args(self):
        """Test that the argument bound is configurable."""
        parser = CommandParser(max_args=2)
        parser.parse("a b")
        with self.assertRaises(TooManyArguments):
            parser.parse("a b c")

    def test_arguments_may_contain_any_non_operator(self):
        """Test that no quoting or expansion is applied to words."""
        cmd = self.parser.parse("echo $HOME *.txt 'a")
        self.assertEqual(cmd.args, ["echo", "$HOME", "*.txt", "'a"])


class TestRedirections(unittest.TestCase):
    """Test parsing of redirections."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = CommandParser()

    def test_output_redirection(self):
        """Test > wraps the command in a write redirection on fd 1."""
        cmd = self.parser.parse("ls > out.txt")
        self.assertIsInstance(cmd, Redirect)
        self.assertEqual(cmd.file.text, "out.txt")
        self.assertEqual(cmd.mode, RedirectMode.WRITE)
        self.assertEqual(cmd.fd, 1)
        self.assertEqual(cmd.command.args, ["ls"])

    def test_append_redirection(self):
        """Test >> is an append redirection on fd 1."""
        cmd = self.parser.parse("ls >> out.txt")
        self.assertEqual(cmd.mode, RedirectMode.APPEND)
        self.assertEqual(cmd.fd, 1)

    def test_input_redirection(self):
        """Test < is a read redirection on fd 0."""
        cmd = self.parser.parse("sort < in.txt")
        self.assertEqual(cmd.mode, RedirectMode.READ)
        self.assertEqual(cmd.fd, 0)

    def test_redirect_mode_flags(self):
        """Test the open flags of each mode."""
        self.assertEqual(RedirectMode.READ.flags, os.O_RDONLY)
        self.assertEqual(RedirectMode.WRITE.flags, os.O_WRONLY | os.O_CREAT | os.O_TRUNC)
        self.assertEqual(RedirectMode.APPEND.flags, os.O_WRONLY | os.O_CREAT | os.O_APPEND)

    def test_redirections_interleaved_with_arguments(self):
        """Test that redirections may appear between arguments."""
        cmd = self.parser.parse("cmd <in arg1 >out arg2")
        self.assertIsInstance(cmd, Redirect)
        self.assertEqual(cmd.file.text, "out")
        self.assertEqual(cmd.mode, RedirectMode.WRITE)

        inner = cmd.command
        self.assertIsInstance(inner, Redirect)
        self.assertEqual(inner.file.text, "in")
        self.assertEqual(inner.mode, RedirectMode.READ)

        self.assertEqual(inner.command.args, ["cmd", "arg1", "arg2"])

    def test_leading_redirection(self):
        """Test a redirection before the program name."""
        cmd = self.parser.parse("< in.txt sort -r")
        self.assertEqual(cmd.file.text, "in.txt")
        self.assertEqual(cmd.command.args, ["sort", "-r"])

    def test_repeated_redirection_nests_last_outermost(self):
        """Test that the last redirection parsed is the outermost node."""
        cmd = self.parser.parse("echo hi > a > b")
        self.assertEqual(cmd.file.text, "b")
        self.assertEqual(cmd.command.file.text, "a")
        self.assertEqual(cmd.command.command.args, ["echo", "hi"])

    def test_redirection_only(self):
        """Test that a line of only redirections wraps an empty Exec."""
        cmd = self.parser.parse("> out.txt")
        self.assertIsInstance(cmd, Redirect)
        self.assertEqual(cmd.command, Exec(()))

    def test_redirection_without_spaces(self):
        """Test that operators and file names need no whitespace."""
        cmd = self.parser.parse("cat<in>>out")
        self.assertEqual(cmd.mode, RedirectMode.APPEND)
        self.assertEqual(cmd.file.text, "out")
        self.assertEqual(cmd.command.file.text, "in")

    def test_missing_redirect_target_at_end(self):
        """Test that > at the end of the line is rejected."""
        with self.assertRaises(MissingRedirectTarget) as ctx:
            self.parser.parse("ls >")
        self.assertEqual(ctx.exception.fragment, ">")

    def test_missing_redirect_target_before_operator(self):
        """Test that a redirection followed by an operator is rejected."""
        with self.assertRaises(MissingRedirectTarget):
            self.parser.parse("ls > | wc")
        with self.assertRaises(MissingRedirectTarget):
            self.parser.parse("cat < ; ls")


class TestComposition(unittest.TestCase):
    """Test pipes, lists, background and blocks."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = CommandParser()

    def test_list_is_right_associative(self):
        """Test that a; b; c is List(a, List(b, c))."""
        cmd = self.parser.parse("a; b; c")
        self.assertIsInstance(cmd, CommandList)
        self.assertEqual(cmd.left.args, ["a"])
        self.assertIsInstance(cmd.right, CommandList)
        self.assertEqual(cmd.right.left.args, ["b"])
        self.assertEqual(cmd.right.right.args, ["c"])

    def test_pipe_is_right_associative(self):
        """Test that a | b | c is Pipe(a, Pipe(b, c))."""
        cmd = self.parser.parse("a | b | c")
        self.assertIsInstance(cmd, Pipe)
        self.assertEqual(cmd.left.args, ["a"])
        self.assertIsInstance(cmd.right, Pipe)
        self.assertEqual(cmd.right.left.args, ["b"])
        self.assertEqual(cmd.right.right.args, ["c"])

    def test_pipe_binds_tighter_than_list(self):
        """Test that ; separates whole pipelines."""
        cmd = self.parser.parse("a | b; c")
        self.assertIsInstance(cmd, CommandList)
        self.assertIsInstance(cmd.left, Pipe)

    def test_background(self):
        """Test that & wraps the command in Background."""
        cmd = self.parser.parse("sleep 100 &")
        self.assertEqual(cmd, Background(Exec((
            Word("sleep", 0, 5), Word("100", 6, 9)
        ))))

    def test_background_wraps_whole_pipeline(self):
        """Test that & applies to the pipeline before it, not its last stage."""
        cmd = self.parser.parse("a | b &")
        self.assertIsInstance(cmd, Background)
        self.assertIsInstance(cmd.command, Pipe)

    def test_repeated_background_nests(self):
        """Test that each & adds another Background layer."""
        cmd = self.parser.parse("a & &")
        self.assertIsInstance(cmd, Background)
        self.assertIsInstance(cmd.command, Background)
        self.assertEqual(cmd.command.command.args, ["a"])

    def test_background_then_list(self):
        """Test that & may be followed by ; and another command."""
        cmd = self.parser.parse("a & ; b")
        self.assertIsInstance(cmd, CommandList)
        self.assertIsInstance(cmd.left, Background)
        self.assertEqual(cmd.right.args, ["b"])

    def test_background_as_separator(self):
        """Test that a command may follow & directly via ;."""
        cmd = self.parser.parse("a &; b &")
        self.assertIsInstance(cmd.right, Background)

    def test_block(self):
        """Test that a parenthesized line becomes a Block."""
        cmd = self.parser.parse("(a; b)")
        self.assertIsInstance(cmd, Block)
        self.assertIsInstance(cmd.command, CommandList)

    def test_block_redirection_applies_to_group(self):
        """Test that redirections after ) wrap the whole block."""
        cmd = self.parser.parse("(cmd1; cmd2) > out.txt")
        self.assertIsInstance(cmd, Redirect)
        self.assertEqual(cmd.file.text, "out.txt")
        self.assertIsInstance(cmd.command, Block)
        self.assertIsInstance(cmd.command.command, CommandList)

    def test_block_in_pipeline(self):
        """Test that a block may be a pipeline stage."""
        cmd = self.parser.parse("(echo a; echo b) | sort")
        self.assertIsInstance(cmd, Pipe)
        self.assertIsInstance(cmd.left, Block)

    def test_nested_blocks(self):
        """Test that blocks nest."""
        cmd = self.parser.parse("((a))")
        self.assertIsInstance(cmd, Block)
        self.assertIsInstance(cmd.command, Block)
        self.assertEqual(cmd.command.command.args, ["a"])

    def test_trailing_semicolon(self):
        """Test that a trailing ; leaves an empty command on the right."""
        cmd = self.parser.parse("a;")
        self.assertIsInstance(cmd, CommandList)
        self.assertEqual(cmd.right, Exec(()))


class TestParseErrors(unittest.TestCase):
    """Test that malformed lines never yield a tree."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = CommandParser()

    def test_trailing_pipe(self):
        """Test that a pipe with nothing after it is a syntax error."""
        with self.assertRaises(ShellSyntaxError):
            self.parser.parse("ls |")

    def test_leading_pipe(self):
        """Test that a pipe with nothing before it is a syntax error."""
        with self.assertRaises(ShellSyntaxError):
            self.parser.parse("| ls")

    def test_double_pipe(self):
        """Test that || is two pipes with an empty stage between them."""
        with self.assertRaises(ShellSyntaxError):
            self.parser.parse("ls || wc")

    def test_pipe_into_separator(self):
        """Test that a pipe followed by ; is a syntax error."""
        with self.assertRaises(ShellSyntaxError):
            self.parser.parse("ls | ; wc")

    def test_unexpected_paren(self):
        """Test that ( after a word is a syntax error."""
        with self.assertRaises(ShellSyntaxError) as ctx:
            self.parser.parse("ls (")
        self.assertEqual(ctx.exception.fragment, "(")
        self.assertEqual(ctx.exception.position, 3)

    def test_unbalanced_parentheses(self):
        """Test that an unclosed block is rejected."""
        with self.assertRaises(UnbalancedParentheses):
            self.parser.parse("(ls; wc")

    def test_trailing_input(self):
        """Test that an unmatched ) is reported as leftover text."""
        with self.assertRaises(TrailingInput) as ctx:
            self.parser.parse("ls ) wc")
        self.assertEqual(ctx.exception.fragment, ") wc")

    def test_errors_share_base_classes(self):
        """Test that every parse error is a ParseError and a ShellError."""
        for exc in (TrailingInput, UnbalancedParentheses, MissingRedirectTarget,
                    TooManyArguments, ShellSyntaxError):
            self.assertTrue(issubclass(exc, ParseError))
            self.assertTrue(issubclass(exc, ShellError))

    def test_error_message_includes_fragment(self):
        """Test the string form of a parse error."""
        with self.assertRaises(TrailingInput) as ctx:
            self.parser.parse("a )")
        self.assertEqual(str(ctx.exception), "leftovers: )")


class TestTreeHelpers(unittest.TestCase):
    """Test iter_words and rendering."""

    def test_iter_words_order(self):
        """Test that words come out left to right, files after their command."""
        cmd = parse("cat < in a > out | wc -l; (ls) &")
        self.assertEqual([w.text for w in iter_words(cmd)],
                         ["cat", "a", "in", "out", "wc", "-l", "ls"])

    def test_iter_words_spans_are_disjoint(self):
        """Test that no two word spans overlap."""
        line = "a<b>c|d;(e)>>f&"
        spans = sorted((w.start, w.end) for w in iter_words(parse(line)))
        for (_, end), (start, _) in zip(spans, spans[1:]):
            self.assertLessEqual(end, start)
        for start, end in spans:
            self.assertTrue(0 <= start < end <= len(line))

    def test_str_roundtrip(self):
        """Test rendering trees back to text."""
        self.assertEqual(str(parse("a;b;c")), "a; b; c")
        self.assertEqual(str(parse("a|b|c")), "a | b | c")
        self.assertEqual(str(parse("(x y)>o &")), "(x y) > o &")
        self.assertEqual(str(parse(">o")), "> o")

    def test_module_level_parse(self):
        """Test the default parser entry point."""
        self.assertEqual(parse("ls").args, ["ls"])

    def test_trees_are_immutable(self):
        """Test that nodes cannot be modified after parsing."""
        cmd = parse("ls")
        with self.assertRaises(AttributeError):
            cmd.argv = ()


if __name__ == '__main__':
    unittest.main()

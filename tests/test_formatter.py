from receiptmatic.services.formatter import (
    FOOTER,
    HEADER,
    MARKER,
    SEPARATOR,
    LineKind,
    build_template,
    classify_line,
    format_lines,
)


def test_empty_input_yields_no_lines():
    assert format_lines("", 30) == []
    assert format_lines("   \n\t\n", 30) == []


def test_blank_lines_dropped_and_order_kept():
    assert format_lines("Hello\n\n   \nWorld\n", 30) == ["Hello", "World"]


def test_crlf_and_cr_boundaries():
    assert format_lines("a\r\nb\rc", 30) == ["a", "b", "c"]


def test_only_newline_characters_break_lines():
    assert format_lines("a b\x0cc", 30) == ["a b\x0cc"]
    assert format_lines("a b\x85c\x0bd", 30) == ["a b\x85c\x0bd"]
    assert format_lines("a\x1cb\nc", 30) == ["a\x1cb", "c"]


def test_surviving_lines_keep_their_whitespace():
    assert format_lines("  indented  ", 30) == ["  indented  "]


def test_long_line_hard_wrapped_at_width():
    line = "x" * 30 + "y" * 30 + "z" * 5
    chunks = format_lines(line, 30)
    assert [len(c) for c in chunks] == [30, 30, 5]
    assert "".join(chunks) == line


def test_line_of_exact_width_not_split():
    assert format_lines("a" * 30, 30) == ["a" * 30]


def test_wrap_keeps_relative_order_across_lines():
    assert format_lines("abcdef\ngh", 4) == ["abcd", "ef", "gh"]


def test_non_positive_width_disables_wrapping():
    assert format_lines("a" * 50, 0) == ["a" * 50]


def test_template_without_enrichment():
    lines = build_template(["Hello", "World"], [], "2024/01/01 00:00:00")
    assert lines == [
        "收据",
        "2024/01/01 00:00:00",
        "------------------------",
        "Hello",
        "World",
        "------------------------",
        "谢谢惠顾",
        "* * * * *",
    ]


def test_template_inserts_enrichment_block_before_footer():
    lines = build_template(["Hello"], ["Thanks!"], "ts")
    assert lines == [HEADER, "ts", SEPARATOR, "Hello", SEPARATOR, "Thanks!", SEPARATOR, FOOTER, MARKER]


def test_classify_receipt_lines():
    lines = build_template(["a * b"], ["extra"], "ts")
    kinds = [classify_line(i, t, len(lines)) for i, t in enumerate(lines)]
    assert kinds == [
        LineKind.title,
        LineKind.date,
        LineKind.separator,
        LineKind.body,
        LineKind.separator,
        LineKind.body,
        LineKind.separator,
        LineKind.thanks,
        LineKind.marker,
    ]

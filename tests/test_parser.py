import pytest

from hamlc.errors import TemplateIndentationError, ErrorKind
from hamlc.nodes import NodeKind
from hamlc.parser import Parser, continues_attributes, split_line

from .conftest import haml


def parse(source):
    return Parser().parse(haml(source)).unwrap()


def test_split_line():
    assert split_line('    %p hello  ') == ('    ', '%p hello')
    assert split_line('') == ('', '')


def test_div_with_text():
    tree = Parser().parse("%div\n  Hello").unwrap()
    [div] = tree.children(tree.root)
    assert div.kind == NodeKind.MARKUP
    assert div.expression == '%div'
    [text] = tree.children(div)
    assert text.kind == NodeKind.TEXT
    assert text.expression == 'Hello'


def test_siblings_and_dedent():
    tree = parse("""
        %html
          %head
            %title Hi
          %body
            %p one
        %footer
    """)
    html, footer = tree.children(tree.root)
    head, body = tree.children(html)
    assert [n.expression for n in tree.children(head)] == ['%title Hi']
    assert [n.expression for n in tree.children(body)] == ['%p one']
    assert footer.expression == '%footer'
    assert footer.block_level == 0


def test_depth_matches_deepest_block_level():
    tree = parse("""
        %html
          %body
            %div
              %p
          %footer
    """)
    assert tree.depth() == 3


def test_blank_lines_outside_filters_are_skipped():
    tree = parse("""
        %div

          %p
    """)
    [div] = tree.children(tree.root)
    assert [n.expression for n in tree.children(div)] == ['%p']
    assert len(tree.nodes) == 3


def test_multiline_hash_attributes_merge():
    tree = parse("""
        %a{href: '/x',
           title: 'y',
           id: 'z'}
          Link
    """)
    [link] = tree.children(tree.root)
    assert link.expression == "%a{href: '/x', title: 'y', id: 'z'}"
    assert [n.expression for n in tree.children(link)] == ['Link']


def test_multiline_html_attributes_merge():
    tree = parse("""
        %input(type="text"
               name="q")
    """)
    [node] = tree.children(tree.root)
    assert node.expression == '%input(type="text" name="q")'


def test_line_counter_advances_over_merged_lines():
    """Lines 1-3 are one node, so the bad indent is still reported on line 6."""
    source = haml("""
        %a{href: '/x',
           title: 'y',
           id: 'z'}
          Link
        %p
           %b
    """)
    result = Parser().parse(source)
    assert result.error.line == 6


def test_attribute_like_text_is_not_merged_after_closed_tag():
    tree = parse("""
        %p
        Note: read this
    """)
    assert [n.kind for n in tree.children(tree.root)] == [NodeKind.MARKUP, NodeKind.TEXT]


def test_continues_attributes():
    assert continues_attributes("%a{href: '/x',", "   title: 'y'}")
    assert continues_attributes('%a(href="/x"', '   title="y")')
    assert not continues_attributes("%a{href: '/x'}", "   title: 'y'")
    assert not continues_attributes("%a{href: '/x',", "  %p text")
    assert not continues_attributes("Hello (", "  key: value")


def test_code_block_levels():
    tree = parse("""
        %ul
          - for x in context['items']:
            %li= x
        %p done
    """)
    ul, done = tree.children(tree.root)
    [loop] = tree.children(ul)
    [li] = tree.children(loop)
    assert loop.code_block_level == 1
    assert li.code_block_level == 2
    assert done.code_block_level == 1


def test_if_else_share_a_code_block_level():
    tree = parse("""
        - if context['a']:
          %p yes
        - else:
          %p no
    """)
    branch, other = tree.children(tree.root)
    assert branch.code_block_level == other.code_block_level == 1
    assert tree.children(other)[0].code_block_level == 2


def test_blank_line_in_filter_goes_to_top_filter():
    tree = parse("""
        %div
          :javascript
            if (a) {
              b();

            }
          %p after
    """)
    [div] = tree.children(tree.root)
    script, after = tree.children(div)
    condition, blank, closing = tree.children(script)
    assert condition.expression == 'if (a) {'
    assert blank.expression == ''
    assert closing.expression == '}'
    assert [n.expression for n in tree.children(condition)] == ['b();']
    assert after.expression == '%p after'
    assert tree.parent(after) is div


def test_filter_body_may_nest_several_levels():
    tree = parse("""
        :javascript
          function f() {
              return 1;
          }
    """)
    [script] = tree.children(tree.root)
    function, closing = tree.children(script)
    assert [n.expression for n in tree.children(function)] == ['return 1;']
    assert closing.expression == '}'
    assert script.lines(tree) == [(0, 'function f() {'), (4, 'return 1;'), (0, '}')]


def test_silent_comment_body_may_nest_several_levels():
    tree = parse("""
        -#
          %p
              %b
        %p x
    """)
    comment, after = tree.children(tree.root)
    assert comment.kind == NodeKind.COMMENT
    assert after.expression == '%p x'
    assert tree.parent(after) is tree.root


def test_markup_may_not_skip_levels_after_a_filter():
    result = Parser().parse(":plain\n  a\n%div\n  %p\n      %b")
    assert result.error.kind == ErrorKind.BLOCK_TOO_DEEP
    assert result.error.line == 5


def test_parse_result_for_valid_source():
    result = Parser().parse("%p")
    assert result.ok
    assert result.error is None
    assert result.unwrap() is result.tree


def test_parse_does_not_leak_state_between_calls():
    parser = Parser()
    assert parser.parse("%a\n    %b").ok
    # a fresh tab unit is inferred for the second template
    assert parser.parse("%a\n  %b\n    %c").ok


def test_unwrap_raises_for_errors():
    with pytest.raises(TemplateIndentationError):
        Parser().parse("%a\n  %b\n   %c").unwrap()

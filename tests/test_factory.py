import pytest

from hamlc.config import CompilerOptions
from hamlc.factory import NodeFactory
from hamlc.nodes import Tree, Node, NodeKind, Filter, Code


class TestClassification:

    def setup_method(self):
        self.tree = Tree()
        self.root = self.tree.add(Node())
        self.factory = NodeFactory(self.tree, CompilerOptions())

    @pytest.mark.parametrize('expression, kind', [
        ('%div', NodeKind.MARKUP),
        ('#main', NodeKind.MARKUP),
        ('.item', NodeKind.MARKUP),
        ('!!! 5', NodeKind.MARKUP),
        ('! <b>raw</b>', NodeKind.MARKUP),
        ('- x = 1', NodeKind.CODE),
        ('= x', NodeKind.CODE),
        ('!= x', NodeKind.CODE),
        ('/ note', NodeKind.COMMENT),
        ('/[if IE]', NodeKind.COMMENT),
        ('-# silent', NodeKind.COMMENT),
        (':javascript', NodeKind.FILTER),
        (':css', NodeKind.FILTER),
        (':plain', NodeKind.FILTER),
        (':python', NodeKind.FILTER),
        ('Hello world', NodeKind.TEXT),
        ('#{name} says hi', NodeKind.TEXT),
        ('...and more', NodeKind.TEXT),
        (':unknown', NodeKind.TEXT),
        ('\\= not code', NodeKind.TEXT),
    ])
    def test_kind(self, expression, kind):
        assert self.factory.classify(expression, None, self.root)[0] == kind

    def test_classify_is_pure(self):
        first = self.factory.classify('%p', None, self.root)
        second = self.factory.classify('%p', None, self.root)
        assert first == second
        assert len(self.tree.nodes) == 1

    def test_anything_under_a_filter_is_filter_content(self):
        top = self.factory.create(':javascript', None, self.root, 0, 1)
        for expression in ('%div', '- x', '/ y', 'plain'):
            kind, parent = self.factory.classify(expression, top, top)
            assert kind == NodeKind.FILTER
            assert parent is top

    def test_create_appends_to_parent(self):
        node = self.factory.create('%div', None, self.root, 0, 1)
        assert self.root.children == [node.index]
        assert self.tree.parent(node) is self.root
        assert node.block_level == 0
        assert node.code_block_level == 1

    def test_filter_content_points_at_top_filter(self):
        top = self.factory.create(':css', None, self.root, 0, 1)
        line = self.factory.create('a {', top, top, 1, 1)
        nested = self.factory.create('color: red;', line, line, 2, 1)
        assert isinstance(nested, Filter)
        assert line.top == top.index
        assert nested.top == top.index

    def test_blank_line_attaches_to_top_filter(self):
        top = self.factory.create(':css', None, self.root, 0, 1)
        line = self.factory.create('a {', top, top, 1, 1)
        nested = self.factory.create('color: red;', line, line, 2, 1)
        blank = self.factory.create('', nested, nested, 2, 1)
        assert self.tree.parent(blank) is top
        assert blank.top == top.index

    def test_blank_expression_after_non_filter_is_text(self):
        previous = self.factory.create('%p', None, self.root, 0, 1)
        assert self.factory.classify('', previous, self.root)[0] == NodeKind.TEXT

    def test_options_reach_nodes(self):
        factory = NodeFactory(self.tree, CompilerOptions(escape_html=False, format='xhtml'))
        node = factory.create('= x', None, self.root, 0, 1)
        assert isinstance(node, Code)
        assert node.escape is False
        assert node.format == 'xhtml'

    def test_output_level_skips_code_blocks(self):
        ul = self.factory.create('%ul', None, self.root, 0, 1)
        loop = self.factory.create('- for x in y:', ul, ul, 1, 1)
        li = self.factory.create('%li= x', loop, loop, 2, 2)
        assert ul.output_level == 0
        assert loop.output_level == 1
        assert li.output_level == 1

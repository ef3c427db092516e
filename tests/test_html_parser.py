"""测试 HTML 清洗与文本提取."""

from newsroom.utils.html_parser import html_to_text, sanitize_html, text_length


class TestSanitizeHtml:
    """测试 sanitize_html 函数."""

    def test_removes_script_with_body(self) -> None:
        """script 标签及其内容被整体删除."""
        result = sanitize_html("<p>Hello</p><script>alert('xss')</script>")
        assert "<script" not in result
        assert "alert" not in result
        assert "<p>Hello</p>" in result

    def test_removes_style_and_textarea_bodies(self) -> None:
        """style/textarea 的内容不保留."""
        result = sanitize_html("<style>body{color:red}</style><textarea>raw</textarea><p>ok</p>")
        assert "color:red" not in result
        assert "raw" not in result
        assert result == "<p>ok</p>"

    def test_keeps_allowed_image_attributes(self) -> None:
        """img 保留白名单属性."""
        result = sanitize_html(
            '<img src="https://cdn.example.com/a.png" alt="Chart" width="300" '
            'height="200" title="Budget" onerror="alert(1)" class="big">'
        )
        assert 'src="https://cdn.example.com/a.png"' in result
        assert 'alt="Chart"' in result
        assert 'width="300"' in result
        assert 'height="200"' in result
        assert 'title="Budget"' in result
        assert "onerror" not in result
        assert "class" not in result

    def test_strips_event_handlers_from_allowed_tags(self) -> None:
        """允许的标签也会去掉非白名单属性."""
        result = sanitize_html('<p onclick="steal()" style="x">Text</p>')
        assert result == "<p>Text</p>"

    def test_unwraps_disallowed_tags_keeping_text(self) -> None:
        """非白名单标签被拆除，文本保留."""
        result = sanitize_html("<form><p>Inside <font>form</font></p></form>")
        assert result == "<p>Inside form</p>"

    def test_keeps_headings_and_lists(self) -> None:
        """标题、列表、强调标签保留."""
        html = (
            "<h1>Title</h1><h2>Sub</h2>"
            "<ul><li><em>one</em></li><li><strong>two</strong></li></ul>"
        )
        assert sanitize_html(html) == html

    def test_keeps_safe_link(self) -> None:
        """http 链接保留 href/target."""
        result = sanitize_html('<a href="https://example.com" target="_blank" rel="x">Link</a>')
        assert 'href="https://example.com"' in result
        assert 'target="_blank"' in result
        assert "rel=" not in result

    def test_drops_javascript_url(self) -> None:
        """javascript: 协议被移除."""
        result = sanitize_html('<a href="javascript:alert(1)">Click</a>')
        assert "javascript" not in result
        assert "Click" in result

    def test_drops_obfuscated_javascript_url(self) -> None:
        """夹杂空白或实体的协议同样被识别."""
        result = sanitize_html(
            '<a href="  java\tscript:alert(1)">x</a>'
            '<a href="&#106;avascript:alert(1)">y</a>'
        )
        assert "script:" not in result.lower()

    def test_drops_data_image_source(self) -> None:
        """data: 不在允许的协议内."""
        result = sanitize_html('<img src="data:image/png;base64,AAAA" alt="x">')
        assert "data:" not in result
        assert 'alt="x"' in result

    def test_keeps_relative_urls(self) -> None:
        """相对地址和协议相对地址保留."""
        result = sanitize_html('<a href="/articles/1">a</a><img src="//cdn.example.com/x.png">')
        assert 'href="/articles/1"' in result
        assert 'src="//cdn.example.com/x.png"' in result

    def test_removes_comments(self) -> None:
        """HTML 注释被删除."""
        result = sanitize_html("<p>Visible</p><!-- <script>alert(1)</script> -->")
        assert result == "<p>Visible</p>"

    def test_escapes_text(self) -> None:
        """文本中的尖括号保持转义."""
        result = sanitize_html("<p>1 &lt; 2 &amp; 3</p>")
        assert result == "<p>1 &lt; 2 &amp; 3</p>"

    def test_empty_input(self) -> None:
        """空输入返回空字符串."""
        assert sanitize_html("") == ""


class TestHtmlToText:
    """测试 html_to_text 函数."""

    def test_strips_markup(self) -> None:
        """去掉所有标签."""
        assert html_to_text("<p>Hello <b>world</b></p>") == "Hello\nworld"

    def test_ignores_script_text(self) -> None:
        """script 内容不计入文本."""
        assert "alert" not in html_to_text("<p>Hi</p><script>alert(1)</script>")

    def test_text_length_counts_visible_text_only(self) -> None:
        """长度只统计可见文本."""
        assert text_length("<p><img src='a.png'></p>") == 0
        assert text_length("<p>" + "a" * 60 + "</p>") == 60

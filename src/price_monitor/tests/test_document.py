"""Tests for the BeautifulSoup page document."""

from price_monitor.tracker.document import HtmlDocument


def _doc(body: str = "", head: str = "") -> HtmlDocument:
    return HtmlDocument(f"<html><head>{head}</head><body>{body}</body></html>", url="https://x.test/")


class TestHtmlDocument:
    """Tests for HtmlDocument queries."""

    def test_structured_data_returns_ld_json_blocks(self) -> None:
        """Test only JSON-LD scripts are returned, stripped."""
        doc = _doc(
            head='<script type="application/ld+json"> {"a": 1} </script>'
            '<script>var x = 1;</script>'
        )
        assert doc.structured_data() == ['{"a": 1}']

    def test_select_text_falls_back_to_content_attribute(self) -> None:
        """Test empty elements expose their content attribute."""
        doc = _doc('<span itemprop="price" content="129.90"></span><p class="p"> R$ 10 </p>')
        assert doc.select_text("[itemprop='price']") == "129.90"
        assert doc.select_text(".p") == "R$ 10"
        assert doc.select_text(".missing") is None

    def test_meta_checks_property_name_and_itemprop(self) -> None:
        """Test meta lookups across attribute styles."""
        doc = _doc(
            head='<meta property="og:title" content="Shirt">'
            '<meta name="description" content=" Nice ">'
            '<meta itemprop="priceCurrency" content="BRL">'
            '<meta property="og:image" content="">'
        )
        assert doc.meta("og:title") == "Shirt"
        assert doc.meta("description") == "Nice"
        assert doc.meta("priceCurrency") == "BRL"
        assert doc.meta("og:image") is None

    def test_title(self) -> None:
        """Test title text, or None when absent."""
        assert _doc(head="<title> Shirt | ZARA Brasil </title>").title() == "Shirt | ZARA Brasil"
        assert _doc().title() is None

    def test_images_use_src_or_data_src(self) -> None:
        """Test image references keep alt text and joined classes."""
        doc = _doc(
            '<img src="a.jpg" alt="Front" class="media big">'
            '<img data-src="b.jpg">'
            "<img>"
        )
        images = doc.images()
        assert [image.src for image in images] == ["a.jpg", "b.jpg"]
        assert images[0].alt == "Front"
        assert images[0].css_class == "media big"

    def test_text_fragments_skip_hidden_text_and_respect_limit(self) -> None:
        """Test scripts, styles and comments are not scanned."""
        doc = _doc(
            "<script>R$ 1,00</script><style>.a{}</style><!-- R$ 2,00 -->"
            "<p>one</p><p> </p><p>two</p><p>three</p>"
        )
        assert list(doc.text_fragments(10)) == ["one", "two", "three"]
        assert list(doc.text_fragments(2)) == ["one", "two"]

"""Unit tests for BasicPageExtractor."""

from __future__ import annotations

from sitecrawl.extraction.basic import BasicPageExtractor, to_absolute_url

PAGE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>  Widgets Inc </title>
  <meta name="description" content="We make widgets">
  <meta name="keywords" content="widgets, gadgets">
  <meta property="og:title" content="Widgets">
  <meta property="article:author" content="Jo">
  <meta name="empty">
</head>
<body>
  <h1>Welcome</h1>
  <h2>Products</h2>
  <h2>  </h2>
  <h3>Contact <span>us</span></h3>
  <a href="/products" title="All products">Products</a>
  <a href="https://partner.org/" rel="nofollow noopener"></a>
  <a href="">blank</a>
  <img src="/logo.png" alt="Logo">
  <img data-src="/lazy.jpg">
  <img alt="no source">
</body>
</html>
"""


class TestExtract:
    def setup_method(self):
        self.record = BasicPageExtractor().extract(PAGE, "https://widgets.example/home")

    def test_document_fields(self):
        assert self.record["url"] == "https://widgets.example/home"
        assert self.record["title"] == "Widgets Inc"
        assert self.record["description"] == "We make widgets"
        assert self.record["lang"] == "en"
        assert self.record["charset"] == "utf-8"

    def test_meta_and_open_graph(self):
        assert self.record["meta_tags"] == {
            "description": "We make widgets",
            "keywords": "widgets, gadgets",
            "article:author": "Jo",
        }
        assert self.record["open_graph"] == {"og:title": "Widgets"}

    def test_links_are_absolute(self):
        assert self.record["links"] == [
            {
                "href": "https://widgets.example/products",
                "text": "Products",
                "title": "All products",
                "rel": "",
            },
            {
                "href": "https://partner.org/",
                "text": "https://partner.org/",
                "title": "",
                "rel": "nofollow noopener",
            },
        ]

    def test_images_include_lazy_sources(self):
        assert self.record["images"] == [
            {"src": "https://widgets.example/logo.png", "alt": "Logo"},
            {"src": "https://widgets.example/lazy.jpg", "alt": ""},
        ]

    def test_headings_grouped_by_level(self):
        headings = self.record["headings"]
        assert headings["h1"] == ["Welcome"]
        assert headings["h2"] == ["Products"]
        assert headings["h3"] == ["Contact us"]
        assert headings["h6"] == []


class TestDegenerateInput:
    def test_empty_html(self):
        record = BasicPageExtractor().extract("", "https://example.com/")
        assert record["title"] == "No title"
        assert record["links"] == []
        assert record["images"] == []

    def test_unparseable_href_is_kept_verbatim(self):
        assert to_absolute_url("http://[broken", "https://example.com/") == "http://[broken"


class TestPageStats:
    def test_counts(self):
        extractor = BasicPageExtractor()
        record = extractor.extract(PAGE, "https://widgets.example/")
        assert extractor.page_stats(record) == {
            "total_links": 2,
            "total_images": 2,
            "total_headings": 3,
        }

    def test_empty_record_gives_zeroes(self):
        assert BasicPageExtractor().page_stats({}) == {
            "total_links": 0,
            "total_images": 0,
            "total_headings": 0,
        }

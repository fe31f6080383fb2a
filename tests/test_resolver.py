"""Tests for status resolution (ActivityPub and HTML scrape)."""

from datetime import datetime, timezone

import pytest

from tmbu.errors import AttributionLookupError, UnknownAttributionSource
from tmbu.post.model import PendingPost
from tmbu.post.resolver import (
    ATTRIBUTION,
    ActivityPubResolver,
    HtmlScrapeResolver,
    ResolverPolicy,
    first_url,
    meta_description,
    split_first_anchor,
    strip_paragraphs,
)

STATUS = "https://mastodon.example/@alice/111"
ACTOR = "https://mastodon.example/users/alice"
NEWS_STATUS = "https://mastodon.example/@news/222"
HTML_STATUS = "https://quiet.example/@bob/333"

NOTE_CONTENT = (
    '<p>Great read <a href="https://blog.example/post" rel="nofollow noopener" target="_blank">'
    '<span class="invisible">https://</span><span>blog.example/post</span></a></p>'
    '<p>Thanks <span class="h-card"><a href="https://mastodon.example/@carol" class="u-url mention">'
    '@<span>carol</span></a></span> &amp; friends</p>'
)

PUBLISHERS = {
    "https://mastodon.example/@news/": "Example News",
    "https://quiet.example/@bob/": "Bob",
}


def make_post(text="my note", link=STATUS):
    return PendingPost(
        date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        subject="Shared",
        text=text,
        link=link,
        tags={"demo"},
    )


# ---------------------------------------------------------------------------
# HTML helpers
# ---------------------------------------------------------------------------

class TestHtmlHelpers:

    def test_strip_paragraphs(self):
        assert strip_paragraphs("<p>one</p><p>two<br>three</p>") == "one\n\ntwo\nthree"

    def test_strip_paragraphs_unescapes_entities(self):
        assert strip_paragraphs("<p>a &amp; b&nbsp;c</p>") == "a & b c"

    def test_first_anchor_is_removed(self):
        href, rest = split_first_anchor(NOTE_CONTENT)
        assert href == "https://blog.example/post"
        assert "blog.example" not in rest

    def test_mentions_are_not_candidates(self):
        content = '<a class="mention" href="https://m.example/@x">@x</a> see <a href="https://a.example">a</a>'
        href, rest = split_first_anchor(content)
        assert href == "https://a.example"
        assert rest == "@x see "

    def test_no_anchor(self):
        assert split_first_anchor("<p>just words</p>") == (None, "<p>just words</p>")

    def test_later_anchors_are_kept(self):
        content = '<a href="https://one.example">1</a> <a href="https://two.example">2</a>'
        href, rest = split_first_anchor(content)
        assert href == "https://one.example"
        assert 'href="https://two.example"' in rest

    def test_meta_description_name_first(self):
        page = "<head><meta name='description' content='Hi &amp; bye'></head>"
        assert meta_description(page) == "Hi & bye"

    def test_meta_description_content_first(self):
        page = '<meta content="Flipped" name="description">'
        assert meta_description(page) == "Flipped"

    def test_meta_description_absent(self):
        assert meta_description("<meta name='og:title' content='x'>") is None

    def test_meta_description_unquoted_attributes(self):
        page = '<meta name=description content="A status https://b.example/x">'
        assert meta_description(page) == "A status https://b.example/x"

    def test_meta_description_name_is_case_insensitive(self):
        assert meta_description('<META NAME="Description" CONTENT="Loud">') == "Loud"

    def test_hashtag_anchor_by_rel(self):
        content = '<a href="https://m.example/tags/rust" rel="tag">#rust</a> <a href="https://a.example">a</a>'
        href, rest = split_first_anchor(content)
        assert href == "https://a.example"
        assert rest == "#rust "

    def test_first_url_drops_trailing_punctuation(self):
        assert first_url("see https://b.example/x.") == "https://b.example/x"
        assert first_url("(via https://b.example/y), ok") == "https://b.example/y"
        assert first_url("no links") is None


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

class TestResolverPolicy:

    def _policy(self, fake_fetcher):
        return ResolverPolicy(
            fake_fetcher(),
            api_hosts=["api.example"],
            html_hosts=["quiet.example"],
            publishers=PUBLISHERS,
        )

    def test_status_path_uses_activitypub(self, fake_fetcher):
        policy = self._policy(fake_fetcher)
        assert isinstance(policy.select(STATUS), ActivityPubResolver)
        assert isinstance(policy.select("https://x.example/users/a/statuses/9"), ActivityPubResolver)

    def test_html_host_wins(self, fake_fetcher):
        assert isinstance(self._policy(fake_fetcher).select(HTML_STATUS), HtmlScrapeResolver)

    def test_api_host_any_path(self, fake_fetcher):
        assert isinstance(self._policy(fake_fetcher).select("https://API.example/notes/abc"), ActivityPubResolver)

    def test_ordinary_link_has_no_resolver(self, fake_fetcher):
        policy = self._policy(fake_fetcher)
        assert policy.select("https://example.com/x") is None
        assert policy.select(None) is None

    def test_resolve_without_resolver_leaves_post(self, fake_fetcher):
        post = make_post(link="https://example.com/x")
        assert self._policy(fake_fetcher).resolve(post) is False
        assert post.link == "https://example.com/x"
        assert post.text == "my note"


# ---------------------------------------------------------------------------
# ActivityPub
# ---------------------------------------------------------------------------

class TestActivityPubResolver:

    def _fetcher(self, fake_fetcher, note=None, actor=None):
        docs = {STATUS: note or {"attributedTo": ACTOR, "content": NOTE_CONTENT}}
        if actor is not False:
            docs[ACTOR] = actor or {"name": "Alice", "url": "https://mastodon.example/@alice"}
        return fake_fetcher(json_docs=docs)

    def test_status_is_inlined(self, fake_fetcher):
        post = make_post()
        assert ActivityPubResolver(self._fetcher(fake_fetcher)).resolve(post) is True

        assert post.text == (
            "via [Alice](https://mastodon.example/@alice): Great read\n\n"
            "Thanks @carol & friends\n\n"
            "my note"
        )
        assert post.link == "https://blog.example/post"
        assert post.attribution == ATTRIBUTION

    def test_original_link_removed_from_text(self, fake_fetcher):
        post = make_post(text=f"see {STATUS}")
        ActivityPubResolver(self._fetcher(fake_fetcher)).resolve(post)
        assert STATUS not in post.text

    def test_empty_text_has_no_trailing_blank_line(self, fake_fetcher):
        post = make_post(text="")
        ActivityPubResolver(self._fetcher(fake_fetcher)).resolve(post)
        assert post.text.endswith("Thanks @carol & friends")

    def test_status_fetch_failure_leaves_post(self, fake_fetcher):
        post = make_post()
        assert ActivityPubResolver(fake_fetcher()).resolve(post) is False
        assert post.text == "my note"
        assert post.link == STATUS
        assert post.attribution is None

    def test_status_without_content_is_not_resolved(self, fake_fetcher):
        post = make_post()
        fetcher = fake_fetcher(json_docs={STATUS: {"attributedTo": ACTOR}})
        assert ActivityPubResolver(fetcher).resolve(post) is False
        assert post.link == STATUS

    def test_actor_fetch_failure_aborts(self, fake_fetcher):
        post = make_post()
        with pytest.raises(AttributionLookupError):
            ActivityPubResolver(self._fetcher(fake_fetcher, actor=False)).resolve(post)
        assert post.text == "my note"

    def test_actor_without_any_name_aborts(self, fake_fetcher):
        with pytest.raises(AttributionLookupError):
            ActivityPubResolver(self._fetcher(fake_fetcher, actor={"id": ACTOR})).resolve(make_post())

    def test_actor_preferred_username_and_id_fallback(self, fake_fetcher):
        post = make_post()
        fetcher = self._fetcher(fake_fetcher, actor={"name": "", "preferredUsername": "alice"})
        ActivityPubResolver(fetcher).resolve(post)
        assert post.text.startswith(f"via [alice]({ACTOR}): ")

    def test_attributed_to_as_list_of_objects(self, fake_fetcher):
        note = {"attributedTo": [{"type": "Person", "id": ACTOR}], "content": "<p>hi</p>"}
        post = make_post()
        ActivityPubResolver(self._fetcher(fake_fetcher, note=note)).resolve(post)
        assert post.text.startswith("via [Alice]")
        assert post.link is None

    def test_known_publisher_without_author(self, fake_fetcher):
        post = make_post(link=NEWS_STATUS)
        fetcher = fake_fetcher(json_docs={NEWS_STATUS: {"content": "<p>Breaking</p>"}})
        ActivityPubResolver(fetcher, PUBLISHERS).resolve(post)
        assert post.text == "via [Example News](https://mastodon.example/@news): Breaking\n\nmy note"
        assert post.link is None

    def test_unknown_publisher_without_author_aborts(self, fake_fetcher):
        fetcher = fake_fetcher(json_docs={STATUS: {"content": "<p>Who?</p>"}})
        with pytest.raises(UnknownAttributionSource):
            ActivityPubResolver(fetcher, PUBLISHERS).resolve(make_post())

    def test_anchor_pointing_back_at_status_clears_link(self, fake_fetcher):
        note = {"attributedTo": ACTOR, "content": f'<p><a href="{STATUS}">self</a></p>'}
        post = make_post()
        ActivityPubResolver(self._fetcher(fake_fetcher, note=note)).resolve(post)
        assert post.link is None
        assert STATUS not in post.text

    def test_no_link_does_nothing(self, fake_fetcher):
        post = make_post(link=None)
        fetcher = fake_fetcher()
        assert ActivityPubResolver(fetcher).resolve(post) is False
        assert fetcher.calls == []


# ---------------------------------------------------------------------------
# HTML scrape
# ---------------------------------------------------------------------------

class TestHtmlScrapeResolver:

    def _page(self, description):
        return f'<html><head><meta name="description" content="{description}"></head></html>'

    def test_description_is_inlined(self, fake_fetcher):
        fetcher = fake_fetcher(pages={HTML_STATUS: self._page("Look at this https://blog.example/a")})
        post = make_post(link=HTML_STATUS)

        assert HtmlScrapeResolver(fetcher, PUBLISHERS).resolve(post) is True
        assert post.text == "via [Bob](https://quiet.example/@bob): Look at this\n\nmy note"
        assert post.link == "https://blog.example/a"
        assert post.attribution == ATTRIBUTION

    def test_sentence_punctuation_is_not_part_of_link(self, fake_fetcher):
        fetcher = fake_fetcher(pages={HTML_STATUS: self._page("Read https://blog.example/a.")})
        post = make_post(link=HTML_STATUS)
        HtmlScrapeResolver(fetcher, PUBLISHERS).resolve(post)
        assert post.link == "https://blog.example/a"

    def test_unquoted_meta_name_is_resolved(self, fake_fetcher):
        page = '<html><head><meta name=description content="Look https://blog.example/b"></head></html>'
        post = make_post(link=HTML_STATUS)
        assert HtmlScrapeResolver(fake_fetcher(pages={HTML_STATUS: page}), PUBLISHERS).resolve(post) is True
        assert post.link == "https://blog.example/b"
        assert post.text.startswith("via [Bob](https://quiet.example/@bob): Look")

    def test_description_without_url_clears_link(self, fake_fetcher):
        fetcher = fake_fetcher(pages={HTML_STATUS: self._page("&lt;p&gt;Only words&lt;/p&gt;")})
        post = make_post(link=HTML_STATUS)
        HtmlScrapeResolver(fetcher, PUBLISHERS).resolve(post)
        assert post.link is None
        assert post.text.startswith("via [Bob](https://quiet.example/@bob): Only words")

    def test_missing_description_is_not_resolved(self, fake_fetcher):
        fetcher = fake_fetcher(pages={HTML_STATUS: "<html><head></head></html>"})
        post = make_post(link=HTML_STATUS)
        assert HtmlScrapeResolver(fetcher, PUBLISHERS).resolve(post) is False
        assert post.link == HTML_STATUS

    def test_fetch_failure_is_not_resolved(self, fake_fetcher):
        post = make_post(link=HTML_STATUS)
        assert HtmlScrapeResolver(fake_fetcher(), PUBLISHERS).resolve(post) is False
        assert post.text == "my note"

    def test_unknown_publisher_aborts(self, fake_fetcher):
        fetcher = fake_fetcher(pages={HTML_STATUS: self._page("hello")})
        with pytest.raises(UnknownAttributionSource):
            HtmlScrapeResolver(fetcher, {}).resolve(make_post(link=HTML_STATUS))

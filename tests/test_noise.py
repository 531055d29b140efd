# tests/test_noise.py
"""
Tests for the boilerplate predicates in ``tolge.extract.noise``.
"""

import pytest
from bs4 import BeautifulSoup

from tolge.extract.noise import has_noise_attributes, in_navigation, is_caption, is_noise_text


@pytest.mark.parametrize(
    "line",
    [
        "By Jane Doe",
        "Written by: Mart Kask",
        "Published March 3, 2024",
        "© 2024 Example Media. All rights reserved.",
        "Subscribe to our weekly newsletter",
        "Editor's note: this story was updated with new figures",
        "Related articles",
        "Related: How bees see colour",
        "12 comments",
        "Share this",
        "5 min read",
        "Updated 2 hours ago",
        "Posted on 12.03.2024 14:05",
    ],
)
def test_boilerplate_lines(line):
    assert is_noise_text(line)


@pytest.mark.parametrize(
    "line",
    [
        "The researchers measured the temperature of the lake over three winters.",
        "Related research has shown a similar effect in alpine lakes.",
        "Published in Nature, the study followed more than two thousand patients for a decade.",
        "By the end of the year, the station had logged over four hundred storms.",
        "Published in Nature, the study drew wide praise.",
        "Updated models show the same trend again.",
    ],
)
def test_article_sentences_are_kept(line):
    assert not is_noise_text(line)


def test_noise_attributes_match_whole_tokens():
    soup = BeautifulSoup(
        '<div class="social-share">x</div>'
        '<div id="related-posts">x</div>'
        '<div class="ad">x</div>'
        '<div class="shadow-box">x</div>'
        '<div class="loading">x</div>',
        "html.parser",
    )
    share, related, ad, shadow, loading = soup.find_all("div")
    assert has_noise_attributes(share)
    assert has_noise_attributes(related)
    assert has_noise_attributes(ad)
    assert not has_noise_attributes(shadow)
    assert not has_noise_attributes(loading)


def test_captions_and_navigation():
    soup = BeautifulSoup(
        "<body>"
        "<figure><img src='a.jpg'><figcaption><p>The glacier in 1990</p></figcaption></figure>"
        "<div class='photo-credit'><p>Photo: Jane Doe</p></div>"
        "<div class='menu'><ul><li>Science news and more</li></ul></div>"
        "<p>Plain paragraph</p>"
        "</body>",
        "html.parser",
    )
    caption_p, credit_p, plain_p = soup.find_all("p")
    assert is_caption(caption_p)
    assert is_caption(credit_p)
    assert not is_caption(plain_p)
    assert in_navigation(soup.find("li"))
    assert not in_navigation(plain_p)


def test_ancestors_outside_the_container_are_ignored():
    soup = BeautifulSoup(
        "<div class='page nav-collapsed'><article>"
        "<p>Paragraph inside the article</p>"
        "<figure><p>Caption inside the article</p></figure>"
        "</article></div>",
        "html.parser",
    )
    container = soup.find("article")
    plain_p, caption_p = soup.find_all("p")
    assert in_navigation(plain_p)
    assert not in_navigation(plain_p, container)
    assert not is_caption(plain_p, container)
    assert is_caption(caption_p, container)

from fakes import violation

from yak_a11y.aggregate import merge, tally


def test_overlapping_pair_kept_once_with_first_component():
    page_level = [violation("color-contrast", "<a>x</a>")]
    island_level = [violation("color-contrast", "<a>x</a>", component="island(react): c1")]

    merged = merge([page_level, island_level])

    assert len(merged) == 1
    assert merged[0].component is None
    assert [n.html for n in merged[0].nodes] == ["<a>x</a>"]


def test_first_seen_component_wins_when_island_comes_first():
    first = [violation("button-name", "<button></button>", component="island(vue): a")]
    second = [violation("button-name", "<button></button>", component="island(vue): b")]

    merged = merge([first, second])

    assert [v.component for v in merged] == ["island(vue): a"]


def test_merge_is_idempotent():
    v = [
        violation("image-alt", ["<img src=a>", "<img src=b>"], impact="critical"),
        violation("region", "<div>x</div>", impact="moderate"),
    ]
    assert merge([v]) == merge([v, v])


def test_nodes_are_expanded_before_deduplication():
    a = violation("image-alt", ["<img src=a>", "<img src=b>"])
    b = violation("image-alt", ["<img src=b>", "<img src=c>"])

    merged = merge([[a], [b]])

    assert len(merged) == 1
    assert [n.html for n in merged[0].nodes] == ["<img src=a>", "<img src=b>", "<img src=c>"]


def test_same_html_different_rule_is_not_a_duplicate():
    merged = merge([[violation("label", "<input>")], [violation("aria-roles", "<input>")]])
    assert [v.rule_id for v in merged] == ["label", "aria-roles"]


def test_new_nodes_from_island_keep_their_component():
    page_level = [violation("link-name", "<a></a>")]
    island_level = [violation("link-name", "<a class=x></a>", component="island(react): nav")]

    merged = merge([page_level, island_level])

    assert [(v.component, len(v.nodes)) for v in merged] == [(None, 1), ("island(react): nav", 1)]


def test_tally_counts_nodes_by_severity_in_order():
    counts = tally([
        violation("region", ["<p>1</p>", "<p>2</p>"], impact="minor"),
        violation("image-alt", "<img>", impact="critical"),
    ])
    assert list(counts.items()) == [("critical", 1), ("minor", 2)]

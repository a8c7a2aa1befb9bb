from fairplay_sync.ownership import extract_partner, is_mine, split_names


def test_partner_is_the_other_name():
    assert extract_partner("C Berchier / P Dupont", "Berchier") == "P Dupont"


def test_no_partner_when_only_the_user_is_listed():
    assert extract_partner("C Berchier", "Berchier") is None


def test_partner_match_is_case_insensitive():
    assert extract_partner("P Dupont\nc BERCHIER", "berchier") == "P Dupont"


def test_first_non_matching_name_wins_with_three_occupants():
    assert extract_partner("C Berchier, P Dupont, A Martin", "Berchier") == "P Dupont"


def test_empty_occupants():
    assert extract_partner("", "Berchier") is None
    assert extract_partner(" / , ", "Berchier") is None


def test_split_names_handles_every_separator():
    assert split_names("A\nB / C,D") == ["A", "B", "C", "D"]


def test_is_mine_needs_a_display_name():
    assert is_mine(["C Berchier"], "berch")
    assert not is_mine(["C Berchier"], None)
    assert not is_mine(["C Berchier"], "   ")
    assert not is_mine(["P Dupont"], "Berchier")

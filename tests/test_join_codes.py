from pollcircle.utils.join_codes import (
    JOIN_CODE_ALPHABET,
    JOIN_CODE_LENGTH,
    format_join_code,
    generate_join_code,
    normalize_join_code,
)


def test_generated_codes_use_unambiguous_alphabet():
    for _ in range(200):
        code = generate_join_code()
        assert len(code) == JOIN_CODE_LENGTH
        assert set(code) <= set(JOIN_CODE_ALPHABET)
        assert not set(code) & {"I", "O", "0"}


def test_normalize_strips_separators_and_uppercases():
    assert normalize_join_code("ab-12-cd-34") == "AB12CD34"
    assert normalize_join_code(" ab 12 cd 34 ") == "AB12CD34"
    assert normalize_join_code("AB12CD34") == "AB12CD34"
    assert normalize_join_code(None) == ""


def test_format_splits_in_half():
    assert format_join_code("ABCDEFGH") == "ABCD-EFGH"
    assert format_join_code("ABC") == "ABC"

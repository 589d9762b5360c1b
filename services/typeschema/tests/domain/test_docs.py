import pytest

from typeschema.domain.docs import clean_doc


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, ""),
        ("", ""),
        ("  hello\n  world  ", "hello world"),
        ("first\n\nsecond", "first\nsecond"),
        ("first\n\n\n\nsecond", "first\n\nsecond"),
        ("\n\n  only  \n\n", "only"),
        ("* starred\n * lines\n*\n* here", "starred lines\nhere"),
        ("plain\n* not a list", "plain * not a list"),
        ("windows\r\nline\r\n\r\nbreaks", "windows line\nbreaks"),
    ],
)
def test_clean_doc(raw, expected):
    assert clean_doc(raw) == expected


def test_blank_only_text_is_empty():
    assert clean_doc("   \n \n\t") == ""

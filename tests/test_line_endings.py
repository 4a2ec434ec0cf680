import types

from espmon.line_endings import LineNormalizer, normalized


def _run(norm, *chunks):
    return b"".join(bytes(norm.normalize(c)) for c in chunks)


def test_crlf_is_kept_once():
    assert normalized(b"OK\r\n") == b"OK\r\n"
    assert normalized(b"a\r\nb\r\n") == b"a\r\nb\r\n"


def test_bare_lf_gets_carriage_return():
    assert normalized(b"boot\nready\n") == b"boot\r\nready\r\n"


def test_bare_cr_is_left_alone():
    # Progress output redraws the same line with bare CR.
    assert normalized(b"10%\r20%\r") == b"10%\r20%\r"


def test_crlf_split_across_reads_is_not_duplicated():
    norm = LineNormalizer()
    assert _run(norm, b"OK\r", b"\nnext") == b"OK\r\nnext"


def test_lf_after_non_cr_chunk_boundary():
    norm = LineNormalizer()
    assert _run(norm, b"OK", b"\n") == b"OK\r\n"


def test_multibyte_utf8_split_across_reads_survives():
    text = "température 25°C\n".encode("utf-8")
    cut = text.index(b"\xc2") + 1  # split inside the degree sign
    norm = LineNormalizer()
    out = _run(norm, text[:cut], text[cut:])
    assert out.decode("utf-8") == "température 25°C\r\n"


def test_normalize_is_lazy():
    norm = LineNormalizer()
    gen = norm.normalize(b"a\n")
    assert isinstance(gen, types.GeneratorType)
    assert next(gen) == ord("a")


def test_reset_forgets_trailing_cr():
    norm = LineNormalizer()
    _run(norm, b"x\r")
    norm.reset()
    assert _run(norm, b"\n") == b"\r\n"

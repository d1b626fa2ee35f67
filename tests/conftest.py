import pytest

SAMPLE_HEADERS = [
    ("Host", "www.dogs.com"),
    ("Referer", "http://www.dogs.com/best-dogs/"),
    ("X-Requested-With", "XMLHttpRequest"),
    ("Accept-Encoding", "gzip, deflate"),
    ("Accept", "*/*"),
    ("Accept-Language", "en-us"),
    ("Cookie", "dogman-85=160797435.90310.0000"),
    ("Connection", "keep-alive"),
    ("User-Agent", "Mozilla/5.0 (iPhone; CPU iPhone OS 7_1_1 like Mac OS X) AppleWebKit/537.51.2 "
                   "(KHTML, like Gecko) Version/7.0 Mobile/11D201 Safari/9537.53"),
]


def vlog(tag: str, value: str, xid: int = 270) -> str:
    """Format a line the way varnishlog -o prints it."""
    return f"{xid:5d} {tag:<12s} c {value}\n"


def request_lines(method="GET", path="/comments/best-dogs/", protocol="HTTP/1.1",
                  headers=None, xid=270) -> list[str]:
    if headers is None:
        headers = SAMPLE_HEADERS
    lines = [
        vlog("RxRequest", method, xid),
        vlog("RxURL", path, xid),
        vlog("RxProtocol", protocol, xid),
    ]
    lines += [vlog("RxHeader", f"{name}: {value}", xid) for name, value in headers]
    lines.append(vlog(
        "ReqEnd",
        "1933456148 1401232289.094973087 1401232289.121248960 0.000027418 0.026240110 0.000035763",
        xid,
    ))
    lines.append("\n")
    return lines


@pytest.fixture
def make_line():
    return vlog


@pytest.fixture
def make_request_lines():
    return request_lines


@pytest.fixture
def sample_lines():
    """The dogs.com request from the varnishlog documentation."""
    return [vlog("SessionOpen", "109.77.56.26 50315 209.49.145.8:80")] + request_lines()


@pytest.fixture
def sample_headers():
    return list(SAMPLE_HEADERS)

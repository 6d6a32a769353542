class InternalURIs:
    ROOT = "/"
    # path converter: ids containing "/" still get the uniform 404
    SNIPPET = "/{snippet_id:path}"
    HEALTHZ = "/healthz"
    READYZ = "/readyz"


class Headers:
    RETRY_AFTER = "Retry-After"
    FORWARDED_FOR = "x-forwarded-for"
    CONTENT_LENGTH = "content-length"
    NOSNIFF = {"X-Content-Type-Options": "nosniff"}


PLAIN_TEXT = "text/plain; charset=utf-8"

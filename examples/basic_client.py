"""
Basic object storage client example using objstore_transport.

This example demonstrates uploading an object from a file, reading it
back, and handling a missing object, with any backend.
"""

import logging
import sys
import tempfile

from objstore_transport import NotFound, TransportConfig, TransportFailure, create_transport

# Configure logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)


def main(endpoint: str, token: str, backend: str = "h11") -> None:
    """Upload, fetch and delete one object under ``endpoint``."""
    config = TransportConfig(connect_timeout=10.0)
    transport = create_transport(backend, config)
    headers = {"X-Auth-Token": token}
    url = f"{endpoint}/example-container/hello.txt"

    # Stream the upload from disk
    with tempfile.NamedTemporaryFile(suffix=".txt") as source:
        source.write(b"Hello from objstore_transport\n")
        source.flush()
        upload_headers = dict(headers, **{"Content-Type": "text/plain"})
        with transport.do_request_with_resource(url, "PUT", upload_headers, source.name) as response:
            logger.info(f"Uploaded: {response.status_code} ETag={response.get_header('ETag')}")

    with transport.do_request(url, "GET", headers) as response:
        logger.info(f"Downloaded {response.content_length} bytes: {response.read()!r}")

    with transport.do_request(url, "DELETE", headers):
        logger.info("Deleted")

    try:
        transport.do_request(url, "HEAD", headers)
    except NotFound as e:
        logger.info(f"Gone as expected: {e.message}")
    except TransportFailure as e:
        logger.error(f"Unexpected failure: {e}")
        raise


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("usage: basic_client.py ENDPOINT TOKEN [h11|http.client]")
        sys.exit(1)
    main(*sys.argv[1:4])

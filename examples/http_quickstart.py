# examples/http_quickstart.py
# Serve "Hello world!" on :10000; press Ctrl+C to watch the cleanup order
import logging
from http.server import BaseHTTPRequestHandler

import cleanserve
from cleanserve.services import HTTPService

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s: %(message)s")
logger = logging.getLogger("quickstart")


class HelloHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        body = b"Hello world!"
        self.send_response(200)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


def cleanup(x):
    logger.info(f"clean-up with {x}")


if __name__ == "__main__":
    cleanserve.pre_cleanup_push(cleanup, 2)
    cleanserve.pre_cleanup_push(cleanup, 1)
    cleanserve.post_cleanup_push(cleanup, 4)
    cleanserve.post_cleanup_push(cleanup, 3)
    cleanserve.serve(HTTPService("127.0.0.1", 10000, handler_class=HelloHandler), timeout=5.0)

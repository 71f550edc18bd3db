import json
import os
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from dotenv import load_dotenv

from seeder import seed_documents

load_dotenv()

SERVICE_HOST = os.getenv("SEED_SERVICE_HOST", "127.0.0.1")
SERVICE_PORT = int(os.getenv("SEED_SERVICE_PORT", "8020"))
FAILURE_MESSAGE = "Failed crawling"


def handle_crawl_request(data: Any) -> dict[str, Any]:
    """Run one crawl for a decoded request body.

    Every failure collapses into the same opaque payload; no detail is
    returned to the client.
    """
    try:
        url = data.get("url")
        options = data.get("options")
        if not isinstance(options, dict):
            raise ValueError("options must be an object")
        print(f"Crawling {url}")
        print(f"Options {json.dumps(options)}")
        documents = seed_documents(
            url,
            max_depth=options.get("maxDepth"),
            max_pages=options.get("maxPages"),
            splitter_options=options.get("splitterOptions"),
        )
    except Exception as exc:
        print(f"[error] crawl failed: {exc!r}")
        return {"success": False, "error": FAILURE_MESSAGE}

    print("Crawling done")
    print(f"Documents count {len(documents)}")
    return {"success": True, "documents": documents}


class Handler(BaseHTTPRequestHandler):
    def _json_response(self, status_code: int, payload: dict[str, Any]) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status_code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json_body(self) -> Any:
        length = int(self.headers.get("Content-Length", "0"))
        raw = self.rfile.read(length) if length > 0 else b"{}"
        return json.loads(raw.decode("utf-8"))

    def do_GET(self):
        if self.path == "/api/health":
            self._json_response(200, {"ok": True})
            return
        self.send_error(404, "Not found")

    def do_POST(self):
        if self.path != "/api/crawl":
            self.send_error(404, "Not found")
            return

        try:
            data = self._read_json_body()
        except (json.JSONDecodeError, UnicodeDecodeError):
            self.send_error(400, "Invalid JSON")
            return

        self._json_response(200, handle_crawl_request(data))


def run(host: str = SERVICE_HOST, port: int = SERVICE_PORT) -> None:
    server = ThreadingHTTPServer((host, port), Handler)
    print(f"Crawl service running at http://{host}:{port}")
    server.serve_forever()


if __name__ == "__main__":
    run()

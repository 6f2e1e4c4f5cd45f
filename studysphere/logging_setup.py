import logging
import json
import time
from flask import has_request_context, request

# Keys passed through ``extra=`` by the job runner and pipelines.
JOB_CONTEXT_KEYS = ("job_id", "kind", "stage", "status", "outcome", "duration_ms")


class JsonRequestFormatter(logging.Formatter):
    def format(self, record):
        # Health checks are noise
        if has_request_context() and request.path == "/healthz":
            return ""

        data = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for key in JOB_CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                data[key] = value

        if has_request_context():
            data.update({
                "method": request.method,
                "path": request.path,
                "remote_addr": request.headers.get("X-Forwarded-For", request.remote_addr),
                "request_id": request.headers.get("X-Request-ID"),
            })

        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(data, ensure_ascii=False, default=str)


def setup_logging(app=None, level=logging.INFO):
    root = logging.getLogger()
    root.setLevel(level)

    # drop handlers left over from a reload
    for h in list(root.handlers):
        root.removeHandler(h)

    h = logging.StreamHandler()
    h.setFormatter(JsonRequestFormatter())
    root.addHandler(h)

    if app:
        app.logger.handlers = [h]
        app.logger.setLevel(level)

"""
Basic usage example for cloudlog.

Writes a few grouped entries through the stdout sink, batches a burst while
suspended, and drains everything on exit. Set ``CLOUDLOG_HTTP__PROJECT_ID``
to post to the entries:write endpoint instead.
"""

import logging

import cloudlog
from cloudlog import Entry, FlushError, Resource, Severity


def report(error: FlushError) -> None:
    print(f"dropped {error.entry_count} entries: {error}")


def main() -> None:
    """Demonstrate basic cloudlog usage."""
    resource = Resource("gce_instance", {"zone": "global", "instance_id": "abc123"})

    with cloudlog.runtime(on_error=report) as writer:
        # Structured and text payloads share a group
        writer.write_entries(
            [
                Entry("Application started", severity=Severity.INFO),
                Entry({"startup_time": 0.5, "workers": 2}, severity=Severity.DEBUG),
            ],
            log_name="web_app_log",
            resource=resource,
            labels={"env": "production"},
        )

        # Entries buffered while suspended go out together on resume
        writer.suspend()
        for user_id in ("12345", "67890"):
            writer.write_entries(
                Entry({"user_id": user_id, "action": "login"}),
                log_name="web_app_log",
                resource=resource,
                labels={"env": "production"},
            )
        writer.write_entries(
            Entry("Staging smoke test", severity=Severity.NOTICE),
            log_name="web_app_log",
            resource=resource,
            labels={"env": "staging"},
        )
        writer.resume()

        # Stdlib logging through the same writer
        log = writer.logger("web_app_log", resource, {"env": "production"})
        log.setLevel(logging.INFO)
        log.warning("Slow request: %.2fs", 1.25)


if __name__ == "__main__":
    main()

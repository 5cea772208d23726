import argparse
import os
import socket
import threading

from webworker.worker import WebWorker, SERVER_NAME, READ_TIMEOUT

HOST = "0.0.0.0"
PORT = 8080


def create_server_socket(host=HOST, port=PORT, backlog=5):
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    s.bind((host, port))
    s.listen(backlog)
    return s


def serve_forever(server_socket, **worker_options):
    host, port = server_socket.getsockname()[:2]
    print(f"Serving on http://{host}:{port}")

    try:
        while True:
            try:
                conn, addr = server_socket.accept()
            except OSError:
                # listening socket was closed
                break
            print(f"Connected by {addr}")
            worker = WebWorker(conn, addr, **worker_options)
            thread = threading.Thread(target=worker.run)
            thread.start()
    except KeyboardInterrupt:
        print("\nShutting down server...")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Serve .html pages and images, one thread per connection.")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--root", default=os.getcwd(), help="directory files are served from (default: cwd)")
    parser.add_argument("--timeout", type=float, default=READ_TIMEOUT, help="seconds to wait for the request")
    parser.add_argument("--server-name", default=SERVER_NAME)
    parser.add_argument("--strict-status", action="store_true",
                        help="answer 404 Not Found instead of 200 OK when the file can't be served")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    with create_server_socket(args.host, args.port) as s:
        serve_forever(
            s,
            root=args.root,
            server_name=args.server_name,
            timeout=args.timeout,
            strict_status=args.strict_status,
        )


if __name__ == "__main__":
    main()

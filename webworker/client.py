import os
import socket
import sys

SAVE_DIR = "downloads"
IMAGE_EXTENSIONS = [".gif", ".jpg", ".png"]


def split_response(response):
    for separator in (b"\r\n\r\n", b"\n\n"):
        if separator in response:
            header_data, _, body = response.partition(separator)
            break
    else:
        header_data, body = response, b""

    lines = header_data.decode("iso-8859-1").splitlines()
    status_line = lines[0] if lines else ""
    headers = {}
    for line in lines[1:]:
        if ":" in line:
            key, value = line.split(":", 1)
            headers[key.strip()] = value.strip()
    return status_line, headers, body


def fetch(host, port, path, timeout=5.0):
    if not path.startswith("/"):
        path = "/" + path

    with socket.create_connection((host, port), timeout=timeout) as s:
        request = f"GET {path} HTTP/1.1\r\nHost: {host}\r\nConnection: close\r\n\r\n"
        s.sendall(request.encode())

        response = b""
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            response += chunk

    return split_response(response)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 3:
        print("Usage: webworker-fetch server_host server_port filename")
        return 1

    server_host, server_port, filename = argv[0], int(argv[1]), argv[2]
    status_line, headers, body = fetch(server_host, server_port, filename)
    print("Status:", status_line)

    if "200 OK" not in status_line:
        return 1

    ext = os.path.splitext(filename)[1]
    if ext == ".html":
        print("HTML Content:\n", body.decode("utf-8", errors="replace"))
    elif ext in IMAGE_EXTENSIONS:
        os.makedirs(SAVE_DIR, exist_ok=True)
        save_path = os.path.join(SAVE_DIR, os.path.basename(filename))
        with open(save_path, "wb") as f:
            f.write(body)
        print(f"{filename} saved to {save_path}")
    else:
        print("Unknown file type, printing as text:")
        print(body.decode(errors="ignore"))
    return 0


if __name__ == "__main__":
    sys.exit(main())

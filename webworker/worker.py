import os
import threading
from email.utils import formatdate

SERVER_NAME = "webworker/0.1"
PAGE_SERVER_NAME = "This is the webworker server"
READ_TIMEOUT = 10.0  # seconds
MAX_LINE = 8192

RETRIEVAL_KEYWORD = "GET"
IGNORED_PATH = "favicon"

# order matters, first substring match wins
MIME_TYPES = (
    (".html", "text/html"),
    (".gif", "image/gif"),
    (".jpg", "image/jpeg"),
    (".png", "image/png"),
)
IMAGE_TYPES = ("image/gif", "image/jpeg", "image/png")

DATE_TOKEN = "<cs371date>"
SERVER_TOKEN = "<cs371server>"

PAGE_OPEN = "<html><head></head><body>\n<h3>My web server works!</h3>\n"
PAGE_CLOSE = "</body></html>\n"
LINE_BREAK = "</br>"
NOT_FOUND_BODY = "404 Not Found."


class ShortReadError(OSError):
    pass


def http_date(timestamp=None):
    return formatdate(timestamp, usegmt=True)


def content_type_for(path):
    for ext, mime in MIME_TYPES:
        if ext in path:
            return mime
    return ""


def resolve_path(root, path):
    if not path or "\x00" in path:
        return None

    relative_path = path.replace("\\", "/").lstrip("/")
    if not relative_path or ".." in relative_path.split("/"):
        return None

    root_abs = os.path.abspath(root)
    file_path = os.path.normpath(os.path.join(root_abs, relative_path))

    # os.path.join drops root_abs if relative_path is still absolute (e.g. "C:/x")
    if os.path.commonpath([file_path, root_abs]) != root_abs or file_path == root_abs:
        return None
    return file_path


def read_line(stream):
    line = stream.readline(MAX_LINE)
    piece = line
    # an oversized line is cut at MAX_LINE, the rest of it is dropped
    while piece and not piece.endswith(b"\n"):
        piece = stream.readline(MAX_LINE)
    return line


def read_http_request(stream):
    path = ""

    while True:
        try:
            raw = read_line(stream)
        except (OSError, ValueError) as e:
            print(f"Request error: {e}")
            break

        if not raw:
            print("Request error: connection closed before end of headers")
            break

        line = raw.decode("iso-8859-1").rstrip("\r\n")
        print(f"Request line: ({line})")
        if len(line) == 0:
            break

        if RETRIEVAL_KEYWORD in line and IGNORED_PATH not in line:
            parts = line.split()
            if len(parts) >= 2:
                path = parts[1]

    return path


def write_http_header(stream, content_type, server_name=SERVER_NAME, status="200 OK"):
    header = f"HTTP/1.1 {status}\r\n"
    header += f"Date: {http_date()}\r\n"
    header += f"Server: {server_name}\r\n"
    header += "Connection: close\r\n"
    if content_type:
        header += f"Content-Type: {content_type}\r\n"
    header += "\r\n"
    stream.write(header.encode("utf-8"))


def open_content(root, path):
    """Open the file behind path for its content type, or None if it can't be served."""
    content_type = content_type_for(path)
    file_path = resolve_path(root, path)
    if not content_type or file_path is None:
        return None

    try:
        if content_type == "text/html":
            return open(file_path, "r", encoding="utf-8", errors="replace")
        return open(file_path, "rb")
    except OSError as e:
        print(f"Open error: {e}")
        return None


def read_file_bytes(f):
    size = os.fstat(f.fileno()).st_size
    buffer = bytearray(size)
    view = memoryview(buffer)

    received = 0
    while received < size:
        n = f.readinto(view[received:])
        if not n:
            break
        received += n

    if received < size:
        raise ShortReadError(f"read {received} of {size} bytes from {f.name}")
    return bytes(buffer)


def write_html(stream, f, page_server_name):
    stream.write(PAGE_OPEN.encode("utf-8"))

    if f is None:
        stream.write(NOT_FOUND_BODY.encode("utf-8"))
    else:
        for line in f:
            line = line.rstrip("\n")
            line = line.replace(DATE_TOKEN, http_date())
            line = line.replace(SERVER_TOKEN, page_server_name)
            stream.write((line + LINE_BREAK).encode("utf-8"))

    stream.write(PAGE_CLOSE.encode("utf-8"))


def write_image(stream, f):
    if f is None:
        stream.write(NOT_FOUND_BODY.encode("utf-8"))
    else:
        stream.write(read_file_bytes(f))


def write_body(stream, content_type, f, page_server_name=PAGE_SERVER_NAME):
    if content_type == "text/html":
        write_html(stream, f, page_server_name)
    elif content_type in IMAGE_TYPES:
        write_image(stream, f)
    else:
        stream.write(NOT_FOUND_BODY.encode("utf-8"))


def write_content(stream, path, root, page_server_name=PAGE_SERVER_NAME):
    f = open_content(root, path)
    try:
        write_body(stream, content_type_for(path), f, page_server_name)
    finally:
        if f is not None:
            f.close()


class WebWorker:

    def __init__(self, conn, addr=None, root=None, server_name=SERVER_NAME,
                 page_server_name=PAGE_SERVER_NAME, timeout=READ_TIMEOUT, strict_status=False):
        self.conn = conn
        self.addr = addr
        self.root = root if root is not None else os.getcwd()
        self.server_name = server_name
        self.page_server_name = page_server_name
        self.timeout = timeout
        self.strict_status = strict_status

    def status_for(self, f):
        if self.strict_status and f is None:
            return "404 Not Found"
        return "200 OK"

    def run(self):
        name = threading.current_thread().name
        if self.addr is not None:
            print(f"Thread {name}: Handling connection from {self.addr}...")
        else:
            print(f"Thread {name}: Handling connection...")

        f = None
        try:
            self.conn.settimeout(self.timeout)
            with self.conn.makefile("rb") as reader, self.conn.makefile("wb") as writer:
                path = read_http_request(reader)
                content_type = content_type_for(path)

                # the file is opened before the header so the status matches the body
                f = open_content(self.root, path)
                write_http_header(writer, content_type, self.server_name, self.status_for(f))
                write_body(writer, content_type, f, self.page_server_name)
                writer.flush()
        except Exception as e:
            print(f"Output error: {e}")
        finally:
            if f is not None:
                f.close()
            self.conn.close()

        print(f"Thread {name}: Done handling connection.")

"""
Stand-in for `kubectl port-forward` used by the session tests.

    fake_forwarder.py serve PORT      announce 127.0.0.1:PORT and stay up
    fake_forwarder.py fail CODE       complain on stderr and exit with CODE
    fake_forwarder.py print LINE...   print each line and exit cleanly
    fake_forwarder.py stderr LINE...  write each line to stderr and exit cleanly
"""

import sys
import time


def main(argv):
    mode = argv[0]

    if mode == "serve":
        print("Forwarding from 127.0.0.1:%s -> 80" % argv[1], flush=True)
        while True:
            time.sleep(1)

    if mode == "fail":
        sys.stderr.write("error: lost connection to pod\n")
        return int(argv[1])

    if mode == "print":
        for line in argv[1:]:
            print(line, flush=True)
        return 0

    if mode == "stderr":
        for line in argv[1:]:
            sys.stderr.write(line + "\n")
        return 0

    sys.stderr.write("unknown mode %r\n" % mode)
    return 2


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

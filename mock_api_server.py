import os
import random
import time

from flask import Flask, jsonify, request

app = Flask(__name__)

# Optional knobs for exercising the service's timeout and degradation paths.
LATENCY_MS = int(os.environ.get("MOCK_LATENCY_MS", "0"))
FAILURE_RATE = float(os.environ.get("MOCK_FAILURE_RATE", "0"))
BEARER_TOKEN = os.environ.get("MOCK_BEARER_TOKEN")


def _primes(count):
    found = []
    candidate = random.randint(2, 200)
    while len(found) < count:
        if candidate > 1 and all(candidate % d for d in range(2, int(candidate ** 0.5) + 1)):
            found.append(candidate)
        candidate += 1
    return found


def _fibonacci(count):
    start = random.randint(0, 15)
    a, b = 0, 1
    series = []
    for index in range(start + count):
        if index >= start:
            series.append(b)
        a, b = b, a + b
    return series


def _even(count):
    start = random.randint(1, 50) * 2
    return [start + 2 * i for i in range(count)]


def _random(count):
    return [random.randint(1, 100) for _ in range(count)]


GENERATORS = {
    "primes": _primes,
    "fibo": _fibonacci,
    "even": _even,
    "rand": _random,
}


@app.route("/evaluation-service/<string:series>", methods=["GET"])
def numbers(series):
    print(f"------ GET {series}")

    if BEARER_TOKEN:
        auth_header = request.headers.get("Authorization")
        if auth_header != f"Bearer {BEARER_TOKEN}":
            print("Rejected: missing or wrong bearer token")
            return jsonify({"error": "Unauthorized"}), 401

    generator = GENERATORS.get(series)
    if generator is None:
        return jsonify({"error": "Unknown series"}), 404

    if LATENCY_MS:
        time.sleep(LATENCY_MS / 1000.0)
    if FAILURE_RATE and random.random() < FAILURE_RATE:
        print("Injected failure")
        return jsonify({"error": "Injected failure"}), 503

    values = generator(random.randint(3, 12))
    print(f"Returning {values}")
    return jsonify({"numbers": values}), 200


if __name__ == '__main__':
    print("Starting mock numbers provider...")
    print("Serving GET http://0.0.0.0:5000/evaluation-service/{primes,fibo,even,rand}")
    print("Point the service at it with UPSTREAM_BASE_URL=http://localhost:5000/evaluation-service")
    app.run(host='0.0.0.0', port=5000)

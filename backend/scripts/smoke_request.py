"""Run a quick end-to-end check against the app in-process.

Registers a user, adds an exercise and prints the resulting log using
FastAPI's TestClient.
"""

import sys
import os

# Ensure backend folder is on sys.path so `exercise_tracker` can be imported
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastapi.testclient import TestClient
from exercise_tracker.main import app


def main():
    client = TestClient(app)
    user = client.post('/api/users', json={'username': 'smoke'}).json()
    print('USER:', user)
    added = client.post(f"/api/users/{user['_id']}/exercises", json={'description': 'run', 'duration': 30})
    print('EXERCISE:', added.status_code, added.json())
    logs = client.get(f"/api/users/{user['_id']}/logs", params={'limit': 5})
    print('LOG:', logs.status_code, logs.json())


if __name__ == '__main__':
    main()

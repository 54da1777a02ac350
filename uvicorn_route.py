#!/usr/bin/env python3
import uvicorn
from lendit.app import app
from lendit.configs import HOST, PORT, LOG_LEVEL

if __name__ == "__main__":
    print(f"Starting uvicorn server on port {PORT}...")
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL)

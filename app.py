# app.py
from flask import Flask

GREETING = "Hello DevSecOps World!!"

app = Flask(__name__)

@app.route('/')
def index():
    return GREETING

@app.route('/safe-api')
def safe_api():
    return GREETING

if __name__ == '__main__':
    # In CI the app is started with `python app.py` before the smoke test.
    app.run(host='0.0.0.0', port=3000)

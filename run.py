import os

from dotenv import load_dotenv
load_dotenv()
from fleet_rental import create_app

app = create_app()

if __name__ == '__main__':
    app.run(port=int(os.getenv("PORT", 4800)), threaded=True, debug=os.getenv("FLASK_DEBUG") == "1")

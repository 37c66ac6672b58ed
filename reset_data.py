"""
reset_data.py
-------------
Utility script to clear all stored data (users, vehicles, rentals,
notifications) from the local data.pkl file.

Usage:
    $ python reset_data.py

After running this script, you can repopulate sample data by executing:
    $ python seeds.py
"""
from dotenv import load_dotenv
load_dotenv()
from fleet_rental.config import Config
from fleet_rental.models.store import Store


def main():
    store = Store.instance(Config.DATA_PATH)
    store.clear()

    print("data.pkl has been successfully cleared.")
    print("Tip: Run `python seeds.py` to regenerate demo data.")


if __name__ == "__main__":
    main()

import random
import string
from threading import Lock
from locust import HttpUser, task, between


_names_lock = Lock()
_names = []


def _rand_name() -> str:
    return "item-" + "".join(random.choice(string.ascii_lowercase) for _ in range(6))


def _rand_price() -> str:
    return f"{random.uniform(1.0, 100.0):.2f}"


class PriceStoreUser(HttpUser):
    wait_time = between(0.05, 0.15)

    @task(5)
    def list_items(self):
        self.client.get("/list", name="/list")

    @task(3)
    def create_and_price(self):
        name = _rand_name()
        r = self.client.get("/create", params={"item": name, "price": _rand_price()}, name="/create")
        if r.status_code == 200:
            with _names_lock:
                _names.append(name)
            self.client.get("/price", params={"item": name}, name="/price")

    @task(1)
    def contended_create(self):
        # Every user races on the same name; 409 is the expected loser outcome.
        with self.client.get("/create", params={"item": "contended", "price": "1.00"},
                             name="/create [contended]", catch_response=True) as r:
            if r.status_code in (200, 409):
                r.success()

    @task(1)
    def update_or_delete(self):
        with _names_lock:
            name = random.choice(_names) if _names else None
        if name is None:
            return
        if random.random() < 0.5:
            # Another user may have deleted it already.
            with self.client.get("/update", params={"item": name, "price": _rand_price()},
                                 name="/update", catch_response=True) as r:
                if r.status_code in (200, 404):
                    r.success()
        else:
            with self.client.get("/delete", params={"item": name}, name="/delete", catch_response=True) as r:
                if r.status_code in (200, 404):
                    r.success()
                    with _names_lock:
                        try:
                            _names.remove(name)
                        except ValueError:
                            pass

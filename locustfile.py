from locust import HttpUser, task, between
import random

PASSWORD = "Loadtest123"
SIZES = ["small", "medium", "large", "extra-large"]


class ApiUser(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Register an account for this simulated client
        email = f"user_{random.randint(1, 1_000_000)}@example.com"
        r = self.client.post(
            "/api/v1/users/register",
            json={"name": "Load Tester", "email": email, "password": PASSWORD},
        )
        if r.status_code == 201:
            self.headers = {"Authorization": f"Bearer {r.json()['data']['token']}"}
        else:
            self.headers = None

    @task(3)
    def create_order(self):
        if not self.headers:
            return
        price = round(random.uniform(5, 100), 2)
        self.client.post(
            "/api/v1/pedidos",
            json={"client": "Load Tester", "size": random.choice(SIZES), "price": str(price)},
            headers=self.headers,
        )

    @task(1)
    def list_orders(self):
        if not self.headers:
            return
        self.client.get("/api/v1/pedidos", headers=self.headers)

    @task(1)
    def order_stats(self):
        if not self.headers:
            return
        self.client.get("/api/v1/pedidos/stats", headers=self.headers)

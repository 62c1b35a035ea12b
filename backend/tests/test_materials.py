# Overview: Pytest coverage for material stock endpoints and requirement aggregation.

from tally.models import Material

from conftest import make_material, make_order


class TestMaterialCrud:

    def test_create_material_defaults(self, client, headers_a):
        response = client.post('/api/materials', json={'name': 'Bella Canvas Tee'}, headers=headers_a)
        assert response.status_code == 201
        material = response.json['material']
        assert material['quantity'] == 0
        assert material['pack_size'] == 24
        assert material['color'] is None
        assert material['size'] is None

    def test_create_material_blank_color_becomes_null(self, client, headers_a):
        response = client.post('/api/materials', json={
            'name': 'Hoodie', 'color': '  ', 'size': 'XL', 'quantity': 5, 'pack_size': 12,
        }, headers=headers_a)
        assert response.status_code == 201
        assert response.json['material']['color'] is None
        assert response.json['material']['size'] == 'XL'

    def test_create_material_requires_name(self, client, headers_a):
        response = client.post('/api/materials', json={'color': 'Red'}, headers=headers_a)
        assert response.status_code == 400

    def test_create_material_rejects_negative_quantity(self, client, headers_a):
        response = client.post('/api/materials', json={'name': 'Tee', 'quantity': -1}, headers=headers_a)
        assert response.status_code == 400

    def test_create_material_rejects_zero_pack_size(self, client, headers_a):
        response = client.post('/api/materials', json={'name': 'Tee', 'pack_size': 0}, headers=headers_a)
        assert response.status_code == 400

    def test_duplicate_material_rejected(self, client, headers_a):
        body = {'name': 'Gildan T-Shirt', 'color': 'Black', 'size': 'M'}
        first = client.post('/api/materials', json=body, headers=headers_a)
        second = client.post('/api/materials', json={**body, 'quantity': 5}, headers=headers_a)

        assert first.status_code == 201
        assert second.status_code == 409
        assert len(client.get('/api/materials', headers=headers_a).json['materials']) == 1

    def test_duplicate_check_matches_missing_color_and_size(self, client, headers_a):
        assert client.post('/api/materials', json={'name': 'Ink'}, headers=headers_a).status_code == 201
        again = client.post('/api/materials', json={'name': 'Ink', 'color': ''}, headers=headers_a)
        assert again.status_code == 409

    def test_same_name_other_variant_or_owner_allowed(self, client, headers_a, headers_b):
        body = {'name': 'Gildan T-Shirt', 'color': 'Black', 'size': 'M'}
        assert client.post('/api/materials', json=body, headers=headers_a).status_code == 201
        assert client.post('/api/materials', json={**body, 'size': 'L'},
                           headers=headers_a).status_code == 201
        assert client.post('/api/materials', json=body, headers=headers_b).status_code == 201

    def test_list_is_ordered_by_name_color_size(self, client, db_session, user_a, headers_a):
        make_material(db_session, user_a, name="Tee", color="White", size="S")
        make_material(db_session, user_a, name="Hoodie", color="Black", size="M")
        make_material(db_session, user_a, name="Tee", color="Black", size="S")
        make_material(db_session, user_a, name="Tee", color="Black", size="L")

        response = client.get('/api/materials', headers=headers_a)
        assert response.status_code == 200
        keys = [(m['name'], m['color'], m['size']) for m in response.json['materials']]
        assert keys == [
            ("Hoodie", "Black", "M"),
            ("Tee", "Black", "L"),
            ("Tee", "Black", "S"),
            ("Tee", "White", "S"),
        ]


class TestQuantityAdjustment:

    def test_increment_and_decrement(self, client, db_session, user_a, headers_a):
        m = make_material(db_session, user_a, quantity=10)

        up = client.patch(f'/api/materials/{m.id}', json={'delta': 5}, headers=headers_a)
        assert up.status_code == 200
        assert up.json['material']['quantity'] == 15

        down = client.patch(f'/api/materials/{m.id}', json={'delta': -3}, headers=headers_a)
        assert down.json['material']['quantity'] == 12

    def test_floor_at_zero(self, client, db_session, user_a, headers_a):
        m = make_material(db_session, user_a, quantity=4)
        response = client.patch(f'/api/materials/{m.id}', json={'delta': -10}, headers=headers_a)
        assert response.status_code == 200
        assert response.json['material']['quantity'] == 0

    def test_increment_past_ceiling_rejected(self, client, db_session, user_a, headers_a):
        m = make_material(db_session, user_a, quantity=999_990)

        response = client.patch(f'/api/materials/{m.id}', json={'delta': 100}, headers=headers_a)
        assert response.status_code == 400
        assert db_session.get(Material, m.id).quantity == 999_990

        exact = client.patch(f'/api/materials/{m.id}', json={'delta': 10}, headers=headers_a)
        assert exact.status_code == 200
        assert exact.json['material']['quantity'] == 1_000_000

    def test_delta_must_be_integer(self, client, db_session, user_a, headers_a):
        m = make_material(db_session, user_a, quantity=4)
        for bad in ("abc", 1.5, None, True):
            response = client.patch(f'/api/materials/{m.id}', json={'delta': bad}, headers=headers_a)
            assert response.status_code == 400

    def test_unknown_material(self, client, headers_a):
        response = client.patch('/api/materials/99999', json={'delta': 1}, headers=headers_a)
        assert response.status_code == 404


class TestRequirements:

    def _requirements(self, client, headers):
        response = client.get('/api/materials/requirements', headers=headers)
        assert response.status_code == 200
        return {m['id']: m for m in response.json['materials']}

    def test_two_open_orders_short(self, client, db_session, user_a, headers_a):
        m = make_material(db_session, user_a, quantity=15, pack_size=12)
        make_order(db_session, user_a, [(m, 18)], name="Team shirts")
        make_order(db_session, user_a, [(m, 12)], name="Bakery", status="IN_PROGRESS")

        req = self._requirements(client, headers_a)[m.id]
        assert req['total_required'] == 30
        assert req['status'] == 'insufficient'
        assert req['shortage'] == 15
        assert {row['order']['name'] for row in req['order_items']} == {"Team shirts", "Bakery"}

    def test_completing_order_removes_demand_without_touching_stock(
        self, client, db_session, user_a, headers_a
    ):
        m = make_material(db_session, user_a, quantity=15)
        first = make_order(db_session, user_a, [(m, 18)])
        make_order(db_session, user_a, [(m, 12)])

        response = client.patch(f'/api/orders/{first.id}', json={'status': 'COMPLETED'}, headers=headers_a)
        assert response.status_code == 200

        req = self._requirements(client, headers_a)[m.id]
        assert req['total_required'] == 12
        assert req['status'] == 'sufficient'
        assert req['shortage'] == 0
        assert req['quantity'] == 15

    def test_no_orders_zero_stock_is_sufficient(self, client, db_session, user_a, headers_a):
        m = make_material(db_session, user_a, quantity=0)
        req = self._requirements(client, headers_a)[m.id]
        assert req['total_required'] == 0
        assert req['status'] == 'sufficient'
        assert req['shortage'] == 0
        assert req['order_items'] == []

    def test_cancelled_orders_ignored(self, client, db_session, user_a, headers_a):
        m = make_material(db_session, user_a, quantity=1)
        make_order(db_session, user_a, [(m, 40)], status="CANCELLED")
        req = self._requirements(client, headers_a)[m.id]
        assert req['total_required'] == 0
        assert req['status'] == 'sufficient'

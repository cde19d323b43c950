import pytest
from django.test import override_settings

from b2b.models import B2BRequest

URL = '/api/b2b-request/'


def payload(**overrides):
    data = {
        'company_name': 'Acme Ltd',
        'contact_name': 'Ann Example',
        'email': 'ann@acme.test',
        'phone': '01612345678',
        'company_website': '',
        'products_interested': 'Grey C4 mailing bags, printed',
        'estimated_quantity': '20,000 per month',
        'delivery_address': {
            'address_line1': 'Unit 4, Trafford Park',
            'city': 'Manchester',
            'state': 'Greater Manchester',
            'postal_code': 'M17 1AA',
            'country': 'GB',
        },
    }
    data.update(overrides)
    return data


@pytest.mark.integration
def test_submission_is_stored_and_staff_notified(api_client, db, mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        response = api_client.post(URL, payload(), format='json')

    assert response.status_code == 201
    body = response.json()
    assert body['success'] is True
    request = B2BRequest.objects.get(pk=body['data']['id'])
    assert request.status == 'pending'
    assert request.delivery_address['postal_code'] == 'M17 1AA'
    [message] = mailoutbox
    assert message.subject == '📦 New B2B request - Acme Ltd'
    assert message.reply_to == ['ann@acme.test']


@pytest.mark.integration
def test_invalid_submission(api_client, db):
    response = api_client.post(URL, payload(phone='123', products_interested='bags'), format='json')

    assert response.status_code == 400
    body = response.json()
    assert body['error'] == 'Validation failed'
    assert set(body['details']) == {'phone', 'products_interested'}
    assert not B2BRequest.objects.exists()


@pytest.mark.integration
@pytest.mark.parametrize("store", ['cache', 'memory'])
def test_fourth_submission_within_an_hour_is_refused(api_client, db, store):
    with override_settings(RATE_LIMIT_STORE=store):
        statuses = [
            api_client.post(URL, payload(), format='json', REMOTE_ADDR='203.0.113.9').status_code
            for _ in range(4)
        ]
        other_ip = api_client.post(URL, payload(), format='json', REMOTE_ADDR='198.51.100.1')

    assert statuses == [201, 201, 201, 429]
    assert other_ip.status_code == 201


@pytest.mark.integration
def test_spoofed_forwarded_for_does_not_reset_the_count(api_client, db):
    for n in range(3):
        api_client.post(
            URL, payload(), format='json', REMOTE_ADDR='203.0.113.9', HTTP_X_FORWARDED_FOR=f'10.9.9.{n}'
        )

    response = api_client.post(
        URL, payload(), format='json', REMOTE_ADDR='203.0.113.9', HTTP_X_FORWARDED_FOR='10.9.9.200'
    )

    assert response.status_code == 429
    assert response.json()['hint'] == 'You can only submit 3 B2B requests per hour.'


@pytest.mark.integration
@override_settings(TRUSTED_PROXY_COUNT=1)
def test_behind_a_proxy_the_hop_it_appended_identifies_the_client(api_client, db):
    # the load balancer always appends 192.0.2.7; whatever precedes it is client-supplied
    for n in range(3):
        api_client.post(
            URL, payload(), format='json', REMOTE_ADDR='10.0.0.1', HTTP_X_FORWARDED_FOR=f'6.6.6.{n}, 192.0.2.7'
        )

    spoofed = api_client.post(
        URL, payload(), format='json', REMOTE_ADDR='10.0.0.1', HTTP_X_FORWARDED_FOR='1.1.1.1, 192.0.2.7'
    )
    other_client = api_client.post(
        URL, payload(), format='json', REMOTE_ADDR='10.0.0.1', HTTP_X_FORWARDED_FOR='198.51.100.4'
    )

    assert spoofed.status_code == 429
    assert other_client.status_code == 201


@pytest.mark.integration
def test_staff_review_flow(staff_client, staff_user):
    request = B2BRequest.objects.create(**payload())

    listed = staff_client.get('/api/admin/b2b-requests/', {'status': 'pending'})
    updated = staff_client.patch(
        f'/api/admin/b2b-requests/{request.pk}/',
        {'status': 'quoted', 'admin_notes': 'Quoted £0.04/unit'},
        format='json',
    )

    assert [r['id'] for r in listed.json()] == [request.pk]
    assert updated.status_code == 200
    request.refresh_from_db()
    assert request.status == 'quoted'
    assert request.reviewed_by == staff_user
    assert request.reviewed_at is not None
    assert updated.json()['data']['reviewed_by_email'] == staff_user.email


@pytest.mark.integration
def test_staff_update_rejects_unknown_status(staff_client, db):
    request = B2BRequest.objects.create(**payload())

    response = staff_client.patch(f'/api/admin/b2b-requests/{request.pk}/', {'status': 'won'}, format='json')

    assert response.status_code == 400


@pytest.mark.integration
def test_public_cannot_review(api_client, db):
    assert api_client.get('/api/admin/b2b-requests/').status_code == 401

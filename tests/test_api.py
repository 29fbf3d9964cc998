"""End-to-end tests through the FastAPI routes"""

from app.domain.appointments.errors import GatewayError


def book(client, payload) -> str:
    response = client.post("/api/oil-changes", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["trackingId"]


class TestHealth:
    def test_root_and_health(self, client):
        assert client.get("/").status_code == 200
        assert client.get("/health").json() == {"status": "healthy"}


class TestBookingRoutes:
    def test_create_appointment(self, client, booking_payload):
        response = client.post("/api/oil-changes", json=booking_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Appointment scheduled successfully"
        assert body["notifications"] == {"emailSent": True, "smsSent": True}
        assert len(body["trackingId"]) == 32

    def test_create_appointment_when_notifications_fail(
        self, client, booking_payload, email_gateway, sms_gateway
    ):
        email_gateway.send.side_effect = GatewayError("down")
        sms_gateway.send.side_effect = GatewayError("down")

        response = client.post("/api/oil-changes", json=booking_payload)

        assert response.status_code == 201
        assert response.json()["notifications"] == {"emailSent": False, "smsSent": False}

    def test_missing_phone_is_bad_request(self, client, booking_payload):
        booking_payload.pop("customerPhone")

        response = client.post("/api/oil-changes", json=booking_payload)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Phone number is required for appointment notifications",
        }

    def test_malformed_body_is_bad_request(self, client, booking_payload):
        booking_payload["customerEmail"] = "not-an-email"

        response = client.post("/api/oil-changes", json=booking_payload)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["errors"]

    def test_status(self, client, booking_payload):
        tracking_id = book(client, booking_payload)

        response = client.get(f"/api/oil-changes/status/{tracking_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert body["emailSent"] is True
        assert body["acknowledged"] is False
        assert body["calendarInvite"]["status"] == "pending"
        assert body["appointment"]["vehicle"] == "Toyota Camry 2019"
        assert body["appointment"]["address"]["city"] == "Austin"

    def test_status_unknown_token(self, client):
        response = client.get("/api/oil-changes/status/nope")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Appointment not found"}

    def test_verify_email_config(self, client):
        response = client.get("/api/oil-changes/verify-email-config")

        assert response.json() == {"success": True, "message": "Email configuration is valid"}


class TestAcknowledgmentRoutes:
    def test_calendar_response(self, client, booking_payload):
        tracking_id = book(client, booking_payload)

        response = client.post(
            f"/api/oil-changes/calendar-response/{tracking_id}", json={"status": "accepted"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Calendar response recorded successfully"
        assert body["appointment"]["calendarStatus"] == "accepted"
        status = client.get(f"/api/oil-changes/status/{tracking_id}").json()
        assert status["acknowledged"] is True

    def test_calendar_response_invalid_status(self, client, booking_payload):
        tracking_id = book(client, booking_payload)

        response = client.post(
            f"/api/oil-changes/calendar-response/{tracking_id}", json={"status": "maybe"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid calendar response status"

    def test_calendar_response_unknown_token(self, client):
        response = client.post(
            "/api/oil-changes/calendar-response/nope", json={"status": "accepted"}
        )

        assert response.status_code == 404

    def test_confirm_link(self, client, booking_payload):
        tracking_id = book(client, booking_payload)

        response = client.get(f"/api/oil-changes/confirm/{tracking_id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Appointment confirmed successfully"
        status = client.get(f"/api/oil-changes/status/{tracking_id}").json()
        assert status["acknowledged"] is True
        assert status["acknowledgedAt"] is not None

    def test_confirm_link_unknown_token(self, client):
        assert client.get("/api/oil-changes/confirm/nope").status_code == 404


class TestSmsRoutes:
    def test_twilio_form_webhook_confirms(self, client, booking_payload):
        tracking_id = book(client, booking_payload)

        response = client.post(
            "/api/sms/webhook",
            data={"From": "+15551234567", "Body": "yes", "MessageSid": "SMabc"},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Appointment confirmed"}
        status = client.get(f"/api/oil-changes/status/{tracking_id}").json()
        assert status["calendarInvite"]["status"] == "accepted"

    def test_vonage_json_webhook_declines(self, client, booking_payload):
        tracking_id = book(client, booking_payload)

        response = client.post(
            "/api/sms/webhook",
            json={"msisdn": "15551234567", "text": "N", "messageId": "0A000001"},
        )

        assert response.json() == {"success": True, "message": "Appointment cancelled"}
        status = client.get(f"/api/oil-changes/status/{tracking_id}").json()
        assert status["status"] == "pending"
        assert status["calendarInvite"]["status"] == "declined"

    def test_messages_api_payload_with_nested_sender(self, client, booking_payload):
        book(client, booking_payload)

        response = client.post(
            "/api/sms/webhook",
            json={"from": {"type": "sms", "number": "15551234567"}, "text": "Y", "message_uuid": "u1"},
        )

        assert response.json()["message"] == "Appointment confirmed"

    def test_invalid_reply(self, client, booking_payload):
        book(client, booking_payload)

        response = client.post("/api/sms/webhook", data={"From": "+15551234567", "Body": "maybe"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid response"}

    def test_redelivered_webhook(self, client, booking_payload):
        book(client, booking_payload)
        form = {"From": "+15551234567", "Body": "N", "MessageSid": "SMsame"}

        client.post("/api/sms/webhook", data=form)
        response = client.post("/api/sms/webhook", data=form)

        assert response.json() == {"success": True, "message": "Message already processed"}

    def test_no_pending_appointment(self, client):
        response = client.post("/api/sms/webhook", data={"From": "+15557654321", "Body": "Y"})

        assert response.status_code == 404
        assert response.json()["message"] == "No pending appointment found"

    def test_missing_sender(self, client):
        response = client.post("/api/sms/webhook", json={"text": "Y"})

        assert response.status_code == 400

    def test_send_test_sms(self, client, sms_gateway):
        response = client.post(
            "/api/sms/test", json={"phoneNumber": "555-123-4567", "message": "ping"}
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        sms_gateway.send.assert_awaited_once_with("+15551234567", "ping")

    def test_send_test_sms_gateway_failure(self, client, sms_gateway):
        sms_gateway.send.side_effect = GatewayError("SMS gateway not configured")

        response = client.post(
            "/api/sms/test", json={"phoneNumber": "555-123-4567", "message": "ping"}
        )

        assert response.status_code == 502
        assert response.json()["message"] == "SMS gateway not configured"

    def test_send_confirmation(self, client, booking_payload, sms_gateway):
        tracking_id = book(client, booking_payload)
        sms_gateway.send.reset_mock()

        response = client.post("/api/sms/send-confirmation", json={"trackingId": tracking_id})

        assert response.status_code == 200
        sms_gateway.send.assert_awaited_once()

    def test_send_confirmation_unknown_token(self, client):
        response = client.post("/api/sms/send-confirmation", json={"trackingId": "nope"})

        assert response.status_code == 404

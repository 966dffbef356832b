"""
Payment Routes
All payment-related API endpoints.
"""

from flask import current_app, jsonify, request

from smartwin.payments import payment_bp
from smartwin.payments.exceptions import (
    CallbackInputException,
    IPNRegistrationException,
    NotificationException,
    OrderSubmissionException,
    PaymentAuthException,
    PaymentException,
    PaymentGatewayException,
    PaymentTimeoutException,
    PaymentValidationException,
)
from smartwin.payments.models import ManualPaymentSubmission, PaymentRequest
from smartwin.payments.services import REQUIRED_PAYMENT_FIELDS
from smartwin.payments.utils import format_error_response


def _payments():
    return current_app.extensions['payments']


def _request_data():
    """JSON body, or form fields when the body is not JSON."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _log_gateway_error(action: str, e: PaymentGatewayException):
    current_app.logger.error(
        f"{action} failed: {str(e)}",
        extra={"upstream_status": e.status_code, "upstream_response": e.gateway_response}
    )


@payment_bp.route('/pesapal-payment', methods=['POST'])
def initiate_payment():
    """
    Initiate a Pesapal payment (mobile money or card).

    Expected JSON payload:
    {
        "amount": 100,
        "currency": "USD",
        "email": "customer@example.com",
        "firstName": "Jane",
        "lastName": "Doe",
        "phoneNumber": "+254700000000",
        "description": "Consultation fee",
        "paymentMethod": "mobile"
    }
    """
    failed = 'Payment initiation failed'
    try:
        payment_request = PaymentRequest.from_dict(_request_data())
        submission = _payments().submitter.submit(payment_request)

        response = {'success': True}
        response.update(submission.to_dict())
        response['message'] = 'Payment initiated successfully'
        return jsonify(response), 200

    except PaymentValidationException as e:
        return jsonify(format_error_response(
            str(e),
            details='Please check your payment details and try again',
            required=REQUIRED_PAYMENT_FIELDS,
            fields=e.fields,
        )), 400
    except PaymentTimeoutException as e:
        _log_gateway_error('Pesapal payment', e)
        return jsonify(format_error_response(
            failed, details='The payment provider did not respond in time'
        )), 504
    except PaymentAuthException as e:
        _log_gateway_error('Pesapal authentication', e)
        return jsonify(format_error_response(
            failed, details='Could not authenticate with the payment provider'
        )), 502
    except IPNRegistrationException as e:
        _log_gateway_error('Pesapal IPN registration', e)
        return jsonify(format_error_response(
            failed, details='Could not register payment notifications with the provider'
        )), 502
    except OrderSubmissionException as e:
        _log_gateway_error('Pesapal order submission', e)
        return jsonify(format_error_response(
            failed, details='The payment provider rejected the order'
        )), 502
    except PaymentGatewayException as e:
        _log_gateway_error('Pesapal payment', e)
        return jsonify(format_error_response(failed, details=str(e))), 502
    except PaymentException as e:
        current_app.logger.error(f"Pesapal payment error: {str(e)}")
        return jsonify(format_error_response(failed, details=str(e))), 500
    except Exception as e:
        current_app.logger.error(f"Error in initiate_payment: {str(e)}", exc_info=True)
        return jsonify(format_error_response(
            failed, details='An error occurred while initiating payment'
        )), 500


@payment_bp.route('/pesapal-ipn', methods=['GET', 'POST'])
def pesapal_ipn():
    """
    Pesapal IPN callback. Pesapal sends the tracking id in the query string;
    POST bodies are accepted as a fallback.
    """
    body = _request_data() if request.method == 'POST' else {}
    tracking_id = request.args.get('OrderTrackingId') or body.get('OrderTrackingId')
    merchant_reference = request.args.get('OrderMerchantReference') or body.get('OrderMerchantReference')

    try:
        result = _payments().reconciler.reconcile(tracking_id, merchant_reference)

        return jsonify({
            'success': True,
            'orderTrackingId': result.tracking_id,
            'status': result.status.value,
            'transactionDetails': result.raw_provider_payload,
        }), 200

    except CallbackInputException as e:
        return jsonify(format_error_response(str(e))), 400
    except PaymentGatewayException as e:
        _log_gateway_error(f"Pesapal IPN for {tracking_id}", e)
        return jsonify(format_error_response('IPN processing failed', message=str(e))), 500
    except PaymentException as e:
        current_app.logger.error(f"Pesapal IPN error: {str(e)}")
        return jsonify(format_error_response('IPN processing failed', message=str(e))), 500
    except Exception as e:
        current_app.logger.error(f"Error in pesapal_ipn: {str(e)}", exc_info=True)
        return jsonify(format_error_response(
            'IPN processing failed', message='An error occurred while processing the notification'
        )), 500


@payment_bp.route('/payment-notification', methods=['POST'])
def payment_notification():
    """
    Forward a manually reported payment (bank transfer, mobile money, crypto)
    to the operator.
    """
    try:
        email_id = _payments().manual_payments.submit(_request_data())
        return jsonify({
            'success': True,
            'message': 'Payment notification sent successfully',
            'emailId': email_id,
        }), 200

    except PaymentValidationException as e:
        return jsonify(format_error_response(
            str(e), required=ManualPaymentSubmission.REQUIRED_FIELDS, fields=e.fields
        )), 400
    except NotificationException as e:
        current_app.logger.error(f"Payment notification error: {str(e)}")
        return jsonify(format_error_response(
            'Failed to send payment notification', details=str(e)
        )), 500
    except Exception as e:
        current_app.logger.error(f"Error in payment_notification: {str(e)}", exc_info=True)
        return jsonify(format_error_response(
            'Failed to send payment notification',
            details='An error occurred while sending the notification'
        )), 500

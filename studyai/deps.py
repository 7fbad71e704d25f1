from fastapi import Request

from studyai.services.inference import InferenceClient
from studyai.services.singleflight import SingleFlight


def get_inference_client(request: Request) -> InferenceClient:
    return request.app.state.inference_client


def get_summary_flight(request: Request) -> SingleFlight:
    return request.app.state.summary_flight

"""
Pydantic schemas for the show, seat-map and parking-map read endpoints.
"""

from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel


class ShowInfo(BaseModel):
    id: int
    movie_name: str
    language: str
    show_date: date
    start_time: time
    end_time: time
    ticket_price: float
    available_seats: int
    theatre_id: int
    screen_id: int

    model_config = {"from_attributes": True}


class TheatreInfo(BaseModel):
    id: int
    theatre_name: str
    address: Optional[str] = None
    city: str
    state: str

    model_config = {"from_attributes": True}


class ScreenInfo(BaseModel):
    id: int
    screen_number: int
    total_rows: int
    total_columns: int

    model_config = {"from_attributes": True}


class ShowDetailResponse(BaseModel):
    """Show together with its theatre and screen."""

    show: ShowInfo
    theatre: TheatreInfo
    screen: ScreenInfo


class SeatState(BaseModel):
    row_number: int
    col_number: int
    is_booked: bool = True


class ShowSeatMapResponse(BaseModel):
    """Booked seats of a show, used to paint the seat grid."""

    bookings: List[SeatState]


class ParkingFloorInfo(BaseModel):
    id: int
    floor_number: int
    total_rows: int
    total_columns: int

    model_config = {"from_attributes": True}


class ParkingMapResponse(BaseModel):
    """Parking floors of a theatre and the spots already reserved."""

    parkings: List[ParkingFloorInfo]
    reserved_spots: List[str]

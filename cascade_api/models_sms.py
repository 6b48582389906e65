"""
SMS conversation history, one thread per external phone number
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .database import Base


class SmsThread(Base):
    __tablename__ = "sms_threads"

    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(String(20), unique=True, nullable=False, index=True)
    last_message_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    messages = relationship("SmsMessage", back_populates="thread", cascade="all, delete-orphan")


class SmsMessage(Base):
    __tablename__ = "sms_messages"

    id = Column(Integer, primary_key=True, index=True)
    thread_id = Column(Integer, ForeignKey("sms_threads.id"), nullable=False, index=True)
    direction = Column(String(10), nullable=False)  # inbound, outbound
    body = Column(Text, nullable=False)
    twilio_sid = Column(String(50), nullable=True, index=True)
    status = Column(String(20), nullable=False, default="queued")  # queued, sent, delivered, failed
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    thread = relationship("SmsThread", back_populates="messages")

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from .models import Booking, Client, Professional, Service
from .services.catalog import ServiceCatalog

TIME_INPUT_FORMATS = ["%H:%M"]


# -------------------- Public (no login) --------------------

class PublicProfessionalSerializer(serializers.ModelSerializer):
    # Contact details stay private
    class Meta:
        model = Professional
        fields = ["id", "name", "business_name"]


class PublicServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = ["id", "name", "description", "duration_minutes", "price"]


class BookingCreateSerializer(serializers.Serializer):
    """Client-submitted booking request for a public booking page."""
    service_id = serializers.IntegerField()
    client_name = serializers.CharField(max_length=200)
    client_email = serializers.EmailField()
    client_phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")
    date = serializers.DateField()
    time = serializers.TimeField(input_formats=TIME_INPUT_FORMATS)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_client_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("This field may not be blank.")
        return value


class BookingConfirmationSerializer(serializers.ModelSerializer):
    service = serializers.CharField(source="service.name")
    price = serializers.DecimalField(source="service.price", max_digits=8, decimal_places=2)

    class Meta:
        model = Booking
        fields = ["id", "service", "start_time", "end_time", "price", "status"]


# -------------------- Dashboard (authenticated) --------------------

class ServiceSerializer(serializers.ModelSerializer):
    """
    Dashboard CRUD. Bounds come from the model validators
    (duration 15..480, price 0..10000); names are unique per professional.
    """
    class Meta:
        model = Service
        fields = [
            "id", "name", "description", "duration_minutes", "price",
            "active", "created_at", "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("This field may not be blank.")
        return value

    def validate(self, attrs):
        professional = self.context["professional"]
        name = attrs.get("name")
        if name is not None:
            ServiceCatalog.ensure_unique_name(
                professional, name, exclude_id=getattr(self.instance, "pk", None)
            )
        return attrs


class BookingServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = ["id", "name", "duration_minutes", "price"]


class BookingClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = ["id", "name", "email", "phone", "total_bookings"]


class BookingSerializer(serializers.ModelSerializer):
    service = BookingServiceSerializer(read_only=True)
    client = BookingClientSerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "service",
            "client",
            "client_name",
            "client_email",
            "client_phone",
            "start_time",
            "end_time",
            "status",
            "payment_status",
            "notes",
            "created_at",
            "updated_at",
        ]


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.CharField()


class BookingUpdateSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)
    payment_status = serializers.ChoiceField(choices=Booking.PAYMENT_CHOICES, required=False)
    date = serializers.DateField(required=False)
    time = serializers.TimeField(required=False, input_formats=TIME_INPUT_FORMATS)

    def validate(self, attrs):
        if ("date" in attrs) != ("time" in attrs):
            raise serializers.ValidationError("date and time must be provided together.")
        if not attrs:
            raise serializers.ValidationError("Nothing to update.")
        return attrs


class BookingListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUS_CHOICES, required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=500)

    def to_internal_value(self, data):
        data = data.copy()
        if data.get("status"):
            data["status"] = data["status"].upper()
        return super().to_internal_value(data)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError({"end_date": "Must not be before start_date."})
        return attrs


class ClientSerializer(serializers.ModelSerializer):
    # Present when the queryset went through Client.objects.with_spend().
    total_spent = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Client
        fields = [
            "id", "name", "email", "phone", "notes",
            "total_bookings", "total_spent", "last_booking_at", "created_at",
        ]


class ClientNotesSerializer(serializers.Serializer):
    """PATCH /clients/{id}/notes/ body. null or "" clears the notes."""
    notes = serializers.CharField(max_length=5000, allow_blank=True, allow_null=True, trim_whitespace=True)


# -------------------- Registration --------------------

class ProfessionalRegistrationSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    name = serializers.CharField(max_length=200)
    business_name = serializers.CharField(max_length=200)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")

    def validate_email(self, value):
        value = value.strip().lower()
        User = get_user_model()
        if User.objects.filter(username__iexact=value).exists() or User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        User = get_user_model()
        user = User.objects.create_user(
            username=validated_data["email"],
            email=validated_data["email"],
            password=validated_data["password"],
        )
        # post_save on Professional seeds the default service + availability
        return Professional.objects.create(
            user=user,
            name=validated_data["name"],
            business_name=validated_data["business_name"],
            phone=validated_data.get("phone", ""),
        )

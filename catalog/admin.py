from django.contrib import admin
from .models import Profile, Fragrance, Decant, UserFragrance, BrandPosition


class DecantInline(admin.TabularInline):
    model = Decant
    extra = 0


@admin.register(Fragrance)
class FragranceAdmin(admin.ModelAdmin):
    list_display = ("id", "brand", "name", "slug", "has_transparent")
    search_fields = ("brand", "name", "slug")
    inlines = [DecantInline]

    def has_transparent(self, obj):
        return bool(obj.image_url_transparent)
    has_transparent.boolean = True


@admin.register(Decant)
class DecantAdmin(admin.ModelAdmin):
    list_display = ("id", "fragrance", "label", "price_cents", "quantity", "in_stock")
    list_filter = ("in_stock",)
    search_fields = ("fragrance__name", "fragrance__brand", "label")


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "username", "email", "is_admin")
    search_fields = ("username", "email")


admin.site.register(UserFragrance)
admin.site.register(BrandPosition)
